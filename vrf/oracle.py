"""
NativeVRF — the oracle contract.

Ties the registry, access control, puzzle engine, entropy generator,
settlement and difficulty controller together over one owned
:class:`~vrf.types.state.OracleState`. Instances live on a
:class:`~vrf.ledger.chain.LocalChain`; every public method receives the
call's :class:`~vrf.ledger.context.CallContext` first:

    oracle = chain.deploy(NativeVRF, 12345, sender=owner)
    chain.transact(oracle, "whitelist_address", alice, sender=owner)
    chain.transact(oracle, "request_random", 1, sender=alice, value=10**14)
    chain.call(oracle, "get_message_hash", 1, 42, sender=solver)

State-changing methods:
  request_random, fulfill_randomness, whitelist_address, delist_address,
  transfer_ownership, update_global_salt

Views:
  get_message_hash, convert_signatures, get_request, difficulty,
  current_request_id, latest_fulfill_id, random_results, request_initializers,
  get_nonce, rewards, n_block_fulfillments, latest_fulfillment_block,
  is_whitelisted, summary, owner, global_salt, and the deployment parameters
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from . import access, registry, settlement
from . import constants as C
from .config import OracleParams
from .difficulty import initial_difficulty
from .entropy import genesis_random, genesis_salt, mix_salt
from .errors import (AuthorizationError, CryptographicError, ExecutionError,
                     StateConsistencyError, VrfError)
from .ledger.context import CallContext
from .metrics import METRICS
from .puzzle import message_hash_for
from .types.core import Address, Request, RequestId
from .types.state import OracleState
from .utils.hash import normalize_address
from .utils.sig import signature_value

log = logging.getLogger("vrf.oracle")


def _outcome(exc: VrfError) -> str:
    if isinstance(exc, AuthorizationError):
        return "unauthorized"
    if isinstance(exc, StateConsistencyError):
        return "state_conflict"
    if isinstance(exc, CryptographicError):
        return "crypto"
    if isinstance(exc, ExecutionError):
        return "execution"
    return "invalid"


class NativeVRF:
    """Permissionless proof-of-work randomness oracle."""

    def __init__(self, ctx: CallContext, seed: int, params: Optional[OracleParams] = None) -> None:
        params = params or OracleParams()
        params.validate()
        deployer = Address(ctx.msg_sender)
        self.address = ctx.address
        self.state = OracleState(
            owner=deployer,
            params=params,
            difficulty=initial_difficulty(params),
        )
        ctx.charge(2 * C.GAS_KECCAK + 4 * C.GAS_SSTORE)
        self.state.global_salt = genesis_salt(seed, ctx.block, deployer)
        self.state.random_results[C.GENESIS_REQUEST_ID] = genesis_random(seed, self.state.global_salt, ctx.block)
        ctx.emit("OwnershipTransferred", previousOwner=C.ZERO_ADDRESS, newOwner=deployer)
        METRICS.set_difficulty(self.state.difficulty)
        log.info("NativeVRF deployed owner=%s difficulty=%d", deployer, self.state.difficulty)

    # ---- requests ----

    def request_random(self, ctx: CallContext, count: int) -> List[RequestId]:
        ids = registry.request_random(ctx, self.state, count)
        if not ctx.dry_run:
            METRICS.record_requests(len(ids))
        return ids

    def fulfill_randomness(
        self,
        ctx: CallContext,
        request_ids: Sequence[int],
        inputs: Sequence[int],
        signatures: Sequence[bytes],
    ) -> List[int]:
        before = self.state.rewards.copy()
        try:
            randoms = settlement.fulfill_batch(ctx, self.state, list(request_ids), list(inputs), list(signatures))
        except VrfError as exc:
            if not ctx.dry_run:
                METRICS.record_fulfillment(_outcome(exc))
            raise
        if ctx.dry_run:
            return randoms
        paid = sum(before.get(rid, 0) for rid in request_ids)
        METRICS.record_fulfillment("accepted", count=len(randoms), paid=paid)
        METRICS.set_difficulty(self.state.difficulty)
        return randoms

    # ---- administration ----

    def whitelist_address(self, ctx: CallContext, account: str) -> Address:
        return access.whitelist_address(ctx, self.state, account)

    def delist_address(self, ctx: CallContext, account: str) -> Address:
        return access.delist_address(ctx, self.state, account)

    def transfer_ownership(self, ctx: CallContext, new_owner: str) -> Address:
        return access.transfer_ownership(ctx, self.state, new_owner)

    def update_global_salt(self, ctx: CallContext, salt: int) -> int:
        access.require_owner(ctx, self.state)
        ctx.charge(C.GAS_KECCAK + C.GAS_SSTORE)
        self.state.global_salt = mix_salt(self.state.global_salt, salt, ctx.block.timestamp)
        return self.state.global_salt

    # ---- views ----

    def get_message_hash(self, ctx: CallContext, request_id: int, input: int) -> bytes:
        """Puzzle message for ``msg.sender`` in the block the call executes in."""
        return message_hash_for(self.state, request_id, input, ctx.msg_sender, ctx.block.height)

    def convert_signatures(self, ctx: CallContext, signatures: Sequence[bytes]) -> List[int]:
        return [signature_value(s) for s in signatures]

    def get_request(self, ctx: CallContext, request_id: int) -> Request:
        return self.state.request(request_id)

    def difficulty(self, ctx: CallContext) -> int:
        return self.state.difficulty

    def current_request_id(self, ctx: CallContext) -> int:
        return self.state.next_request_id

    def latest_fulfill_id(self, ctx: CallContext) -> int:
        return self.state.latest_fulfill_id

    def random_results(self, ctx: CallContext, request_id: int) -> int:
        return self.state.random_result(request_id)

    def request_initializers(self, ctx: CallContext, request_id: int) -> Address:
        return self.state.request_initializer(request_id)

    def get_nonce(self, ctx: CallContext, account: str) -> int:
        return self.state.nonce_of(Address(normalize_address(account)))

    def rewards(self, ctx: CallContext, request_id: int) -> int:
        return self.state.rewards.get(request_id, 0)

    def n_block_fulfillments(self, ctx: CallContext, height: int) -> int:
        return self.state.fulfillments_at(height)

    def latest_fulfillment_block(self, ctx: CallContext) -> int:
        return self.state.latest_fulfillment_block

    def is_whitelisted(self, ctx: CallContext, account: str) -> bool:
        return Address(normalize_address(account)) in self.state.whitelist

    def summary(self, ctx: CallContext) -> Dict[str, object]:
        return self.state.summary()

    def owner(self, ctx: CallContext) -> Address:
        return self.state.owner

    def global_salt(self, ctx: CallContext) -> int:
        return self.state.global_salt

    def min_difficulty(self, ctx: CallContext) -> int:
        return self.state.params.min_difficulty

    def min_reward(self, ctx: CallContext) -> int:
        return self.state.params.min_reward

    def expected_fulfill_time(self, ctx: CallContext) -> int:
        return self.state.params.expected_fulfill_time

    def estimated_hash_power(self, ctx: CallContext) -> int:
        return self.state.params.estimated_hash_power


__all__ = ["NativeVRF"]
