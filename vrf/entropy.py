"""
Entropy Generator.

Derives the published random value of an accepted submission in three
Keccak-256 stages over packed encodings (input order is fixed):

  stage 1  input, r[id-1], r[id-2], r[id-3] (those that exist),
           requester, submitter, submitter nonce
  stage 2  stage1, global_salt, block height, timestamp, prevrandao,
           coinbase, parent block hash
  stage 3  stage2, gas price, tx origin, gas left, oracle address,
           raw signature bytes

random = int(stage3). The result becomes the "previous random" of the next
request's puzzle, chaining every fulfilment into the next.

After each accepted submission the salt rotates,

    global_salt := keccak(global_salt, timestamp, submitter)

and the submitter's nonce is incremented.

Deployment seeding:

    global_salt₀ := keccak(seed, timestamp, prevrandao, deployer)
    random[0]    := keccak(seed, global_salt₀, height, parent hash)
"""

from __future__ import annotations

from typing import List, Tuple

from . import constants as C
from .ledger.context import BlockEnv, CallContext
from .types.state import OracleState
from .utils.hash import hash_to_int, solidity_keccak

_HISTORY_DEPTH = 3


def _history(state: OracleState, request_id: int) -> List[int]:
    out = []
    for back in range(1, _HISTORY_DEPTH + 1):
        rid = request_id - back
        if rid < 0:
            break
        if rid in state.random_results:
            out.append(state.random_results[rid])
    return out


def stage1(state: OracleState, request_id: int, input: int, submitter: str) -> bytes:
    history = _history(state, request_id)
    types: List[str] = ["uint256"] + ["uint256"] * len(history) + ["address", "address", "uint256"]
    values: List[object] = [input, *history, state.requesters[request_id], submitter, state.nonce_of(submitter)]
    return solidity_keccak(types, values)


def stage2(s1: bytes, global_salt: int, block: BlockEnv) -> bytes:
    return solidity_keccak(
        ["bytes32", "uint256", "uint256", "uint256", "uint256", "address", "bytes32"],
        [s1, global_salt, block.height, block.timestamp, block.prevrandao, block.coinbase, block.prev_hash],
    )


def stage3(s2: bytes, gas_price: int, origin: str, gas_left: int, oracle: str, signature: bytes) -> bytes:
    return solidity_keccak(
        ["bytes32", "uint256", "address", "uint256", "address", "bytes"],
        [s2, gas_price, origin, gas_left, oracle, bytes(signature)],
    )


def derive_random(
    ctx: CallContext,
    state: OracleState,
    request_id: int,
    input: int,
    signature: bytes,
) -> int:
    """Random value for an already-verified submission by ``ctx.msg_sender``."""
    ctx.charge(3 * C.GAS_KECCAK + (_HISTORY_DEPTH + 3) * C.GAS_SLOAD)
    s1 = stage1(state, request_id, input, ctx.msg_sender)
    s2 = stage2(s1, state.global_salt, ctx.block)
    s3 = stage3(s2, ctx.tx.gas_price, ctx.tx.origin, ctx.gas_left, ctx.address, signature)
    return hash_to_int(s3)


def rotate(ctx: CallContext, state: OracleState) -> Tuple[int, int]:
    """Rotate the salt and bump the submitter's nonce; returns (salt, nonce)."""
    ctx.charge(C.GAS_KECCAK + 2 * C.GAS_SSTORE)
    submitter = ctx.msg_sender
    state.global_salt = next_salt(state.global_salt, ctx.block.timestamp, submitter)
    state.nonces[submitter] = state.nonce_of(submitter) + 1
    return state.global_salt, state.nonces[submitter]


def next_salt(global_salt: int, timestamp: int, submitter: str) -> int:
    return hash_to_int(solidity_keccak(["uint256", "uint256", "address"], [global_salt, timestamp, submitter]))


def mix_salt(global_salt: int, salt: int, timestamp: int) -> int:
    """Owner-supplied salt rotation."""
    return hash_to_int(solidity_keccak(["uint256", "uint256", "uint256"], [global_salt, salt, timestamp]))


def genesis_salt(seed: int, block: BlockEnv, deployer: str) -> int:
    return hash_to_int(
        solidity_keccak(
            ["uint256", "uint256", "uint256", "address"],
            [seed, block.timestamp, block.prevrandao, deployer],
        )
    )


def genesis_random(seed: int, global_salt: int, block: BlockEnv) -> int:
    return hash_to_int(
        solidity_keccak(
            ["uint256", "uint256", "uint256", "bytes32"],
            [seed, global_salt, block.height, block.prev_hash],
        )
    )


__all__ = [
    "stage1",
    "stage2",
    "stage3",
    "derive_random",
    "rotate",
    "next_salt",
    "mix_salt",
    "genesis_salt",
    "genesis_random",
]
