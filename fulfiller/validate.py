"""
Pre-submission checks.

Mirrors the oracle's verification order against current ledger reads so a
solver does not spend a transaction on a submission that would revert
(typically because a competing solver already claimed the request). Raises
the same :mod:`vrf.errors` types the oracle would.
"""

from __future__ import annotations

from vrf.errors import (AlreadyFulfilled, InvalidRandomInput, InvalidSignature,
                        PredecessorUnfulfilled, RequestNotInitialized, require)
from vrf.utils.hash import is_zero_address
from vrf.utils.sig import meets_difficulty, recover_signer

from .client import OracleClient
from .search import PuzzleSnapshot, Solution


def preflight(client: OracleClient, snapshot: PuzzleSnapshot, solution: Solution) -> None:
    rid = snapshot.request_id
    require(not is_zero_address(client.request_initializer(rid)), RequestNotInitialized(context={"request_id": rid}))
    require(client.random_result(rid) == 0, AlreadyFulfilled(context={"request_id": rid}))
    require(
        rid - 1 == 0 or client.random_result(rid - 1) != 0,
        PredecessorUnfulfilled(context={"request_id": rid}),
    )

    local = snapshot.message(solution.input)
    remote = client.message_hash(rid, solution.input)
    require(
        local == remote,
        InvalidSignature("message hash drift", context={"local": local.hex(), "remote": remote.hex()}),
    )
    require(recover_signer(local, solution.signature) == client.address, InvalidSignature())

    difficulty = client.difficulty()
    require(
        meets_difficulty(solution.value, difficulty),
        InvalidRandomInput(context={"difficulty": difficulty, "snapshot_difficulty": snapshot.difficulty}),
    )


__all__ = ["preflight"]
