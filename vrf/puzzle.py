"""
Puzzle & Verification Engine.

The puzzle message a solver must sign for request ``id``:

    keccak256(abi.encodePacked(
        uint256 prevRandom,    # random result of request id-1
        uint256 input,         # solver-chosen candidate
        uint256 requestId,
        address sender,        # submitter
        uint256 nonce,         # submitter's current nonce
        uint256 blockHeight,   # block the submission executes in
    ))

Binding the previous random prevents replaying a solution across requests,
and the nonce prevents replaying a stale signature after it was accepted.

Verification of one submission, in order (first failure wins):

  1. request has a requester                  → RequestNotInitialized
  2. request not yet fulfilled                → AlreadyFulfilled
  3. request id-1 fulfilled                   → PredecessorUnfulfilled
  4. signature recovers to the submitter      → InvalidSignature
  5. signature value ≡ 0 (mod difficulty)     → InvalidRandomInput
"""

from __future__ import annotations

from typing import Optional

from . import constants as C
from .errors import (AlreadyFulfilled, InvalidRandomInput, InvalidSignature,
                     PredecessorUnfulfilled, RequestNotInitialized, require)
from .ledger.context import CallContext
from .types.state import OracleState
from .utils.hash import solidity_keccak
from .utils.sig import meets_difficulty, recover_signer, signature_value

_MESSAGE_TYPES = ("uint256", "uint256", "uint256", "address", "uint256", "uint256")


def message_hash(
    prev_random: int,
    input: int,
    request_id: int,
    sender: str,
    nonce: int,
    height: int,
) -> bytes:
    """Pure puzzle message; identical on the oracle and in the solver."""
    return solidity_keccak(_MESSAGE_TYPES, (prev_random, input, request_id, sender, nonce, height))


def message_hash_for(state: OracleState, request_id: int, input: int, sender: str, height: int) -> bytes:
    """Puzzle message for `sender` against the current oracle state."""
    return message_hash(
        state.random_result(request_id - 1) if request_id > 0 else 0,
        input,
        request_id,
        sender,
        state.nonce_of(sender),
        height,
    )


def check_request_open(state: OracleState, request_id: int) -> None:
    """Lifecycle checks 1–3."""
    require(request_id in state.requesters, RequestNotInitialized(context={"request_id": request_id}))
    require(not state.is_fulfilled(request_id), AlreadyFulfilled(context={"request_id": request_id}))
    require(
        state.is_fulfilled(request_id - 1),
        PredecessorUnfulfilled(context={"request_id": request_id}),
    )


def verify_signature(msg_hash: bytes, signature: bytes, submitter: str, difficulty: int) -> int:
    """Checks 4–5; returns the signature's numeric value."""
    signer: Optional[str] = recover_signer(msg_hash, signature)
    require(signer is not None and signer == submitter, InvalidSignature(context={"signer": signer}))
    value = signature_value(signature)
    require(
        meets_difficulty(value, difficulty),
        InvalidRandomInput(context={"difficulty": difficulty, "remainder": value % difficulty}),
    )
    return value


def verify_submission(
    ctx: CallContext,
    state: OracleState,
    request_id: int,
    input: int,
    signature: bytes,
) -> int:
    """Full on-ledger verification of one submission by ``ctx.msg_sender``."""
    ctx.charge(3 * C.GAS_SLOAD)
    check_request_open(state, request_id)
    submitter = ctx.msg_sender
    ctx.charge(2 * C.GAS_SLOAD + C.GAS_KECCAK)
    msg_hash = message_hash_for(state, request_id, input, submitter, ctx.block.height)
    ctx.charge(C.GAS_ECRECOVER)
    return verify_signature(msg_hash, signature, submitter, state.difficulty)


__all__ = [
    "message_hash",
    "message_hash_for",
    "check_request_open",
    "verify_signature",
    "verify_submission",
]
