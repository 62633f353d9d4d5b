"""
Request Registry.

``request_random(count)`` with ``value`` attached escrows the payment in the
oracle's custody and assigns ``count`` consecutive ids starting at
``next_request_id``. Each id is credited ``value // count``; the integer
remainder stays with the oracle. Escrow is only ever released to a solver;
there is no refund path for requests nobody fulfils.
"""

from __future__ import annotations

import logging
from typing import List

from . import constants as C
from .access import require_whitelisted
from .errors import RewardTooLow, ZeroCount, require
from .ledger.context import CallContext
from .types.core import RequestId
from .types.state import OracleState

log = logging.getLogger("vrf.registry")


def reward_share(value: int, count: int) -> int:
    return value // count


def request_random(ctx: CallContext, state: OracleState, count: int) -> List[RequestId]:
    require_whitelisted(ctx, state)
    require(isinstance(count, int) and count >= 1, ZeroCount(context={"count": count}))
    share = reward_share(ctx.tx.value, count)
    require(
        share >= state.params.min_reward,
        RewardTooLow(context={"share": share, "min_reward": state.params.min_reward}),
    )

    first = state.next_request_id
    ids: List[RequestId] = []
    for rid in range(first, first + count):
        ctx.charge(2 * C.GAS_SSTORE)
        state.requesters[rid] = ctx.msg_sender
        state.rewards[rid] = share
        ctx.emit("RandomRequested", requestId=rid)
        ids.append(RequestId(rid))
    ctx.charge(C.GAS_SSTORE)
    state.next_request_id = first + count
    log.debug("requested ids %d..%d by %s share=%d", first, first + count - 1, ctx.msg_sender, share)
    return ids


__all__ = ["request_random", "reward_share"]
