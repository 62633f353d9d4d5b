"""
Settlement: all-or-nothing fulfilment batches.

For a batch submitted by ``msg.sender``:

  1. reject relayed calls (origin != sender), empty batches and ragged arrays
  2. decode each (id, input, signature) triple into a Submission (an input
     outside uint256 or a non-bytes signature reverts), then in order:
       verify (puzzle) → derive random (entropy) → record it, advance
       latest_fulfill_id, release the id's reward, emit RandomFullfilled,
       rotate salt + nonce
  3. difficulty bookkeeping for the whole batch (one retarget at most)
  4. pay the summed reward to the submitter in one transfer

Any failure raises and the ledger discards every write made by the batch.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from . import constants as C
from .difficulty import record_fulfillments
from .entropy import derive_random, rotate
from .errors import EmptyBatch, LengthMismatch, NotDirectCall, require
from .ledger.context import CallContext
from .puzzle import verify_submission
from .types.core import RequestId, Submission
from .types.state import OracleState

log = logging.getLogger("vrf.settlement")


def fulfill_batch(
    ctx: CallContext,
    state: OracleState,
    request_ids: Sequence[int],
    inputs: Sequence[int],
    signatures: Sequence[bytes],
) -> List[int]:
    require(not ctx.tx.relayed, NotDirectCall(context={"origin": ctx.tx.origin, "sender": ctx.msg_sender}))
    require(len(request_ids) > 0, EmptyBatch())
    require(
        len(request_ids) == len(inputs) == len(signatures),
        LengthMismatch(
            context={"ids": len(request_ids), "inputs": len(inputs), "signatures": len(signatures)}
        ),
    )

    batch = [Submission(RequestId(rid), inp, sig) for rid, inp, sig in zip(request_ids, inputs, signatures)]
    submitter = ctx.msg_sender
    randoms: List[int] = []
    total_reward = 0
    for sub in batch:
        rid = sub.request_id
        verify_submission(ctx, state, rid, sub.input, sub.signature)
        random = derive_random(ctx, state, rid, sub.input, sub.signature)

        ctx.charge(3 * C.GAS_SSTORE)
        state.random_results[rid] = random
        state.latest_fulfill_id = rid
        total_reward += state.rewards.get(rid, 0)
        state.rewards[rid] = 0
        ctx.emit("RandomFullfilled", requestId=rid, random=random)
        rotate(ctx, state)
        randoms.append(random)

    ctx.charge(2 * C.GAS_SSTORE)
    record_fulfillments(state, ctx.block.height, len(randoms))
    ctx.transfer(submitter, total_reward)
    log.info(
        "fulfilled ids %d..%d by %s reward=%d difficulty=%d",
        request_ids[0], request_ids[-1], submitter, total_reward, state.difficulty,
    )
    return randoms


__all__ = ["fulfill_batch"]
