"""
Difficulty Controller
=====================

Maintains the puzzle difficulty D: a submission is accepted only when the
numeric value of its signature is an exact multiple of D. The controller
retunes D from observed fulfilment throughput.

Model
-----
The initial difficulty is the product of two design constants,

    D₀ = expected_fulfill_time × estimated_hash_power

i.e. the number of signatures a solver of the assumed speed needs, on
average, to wait the target latency. A solver tries ~D candidates before one
succeeds, so D is directly proportional to expected solve latency.

Retarget (once per distinct block, at the end of a fulfilment batch at
height h, never mid-block):

    if h > latest_block:
        prev = fulfilments[latest_block]
        gap  = h - latest_block
        D    = D_min                               if gap > prev
             = max(D_min, ⌊D · prev / gap⌋)         otherwise
        latest_block = h
    fulfilments[h] += batch_size

When solves arrive faster than one per block (prev > gap) D rises; when the
rate falls below one per block D drops straight to the floor so the puzzle
stays solvable after a lull.

Exports
-------
- RetargetParams
- initial_difficulty(params)
- retarget(difficulty, prev_fulfillments, block_gap, params)   (pure)
- record_fulfillments(state, height, count)                    (mutates state)

`initial_difficulty` and `retarget` are deterministic and side-effect free.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import OracleParams
from .types.state import OracleState

log = logging.getLogger("vrf.difficulty")


@dataclass(frozen=True)
class RetargetParams:
    """
    Attributes
    ----------
    min_difficulty : int
        Floor; D never drops below it.
    """

    min_difficulty: int

    @classmethod
    def from_oracle_params(cls, params: OracleParams) -> "RetargetParams":
        return cls(min_difficulty=params.min_difficulty)


def initial_difficulty(params: OracleParams) -> int:
    """D₀ = expected_fulfill_time × estimated_hash_power."""
    return params.expected_fulfill_time * params.estimated_hash_power


def retarget(difficulty: int, prev_fulfillments: int, block_gap: int, params: RetargetParams) -> int:
    """
    New difficulty after `block_gap` blocks since the last block that held
    `prev_fulfillments` fulfilments.
    """
    if block_gap <= 0:
        raise ValueError("block_gap must be > 0")
    if prev_fulfillments < 0:
        raise ValueError("prev_fulfillments must be >= 0")
    if block_gap > prev_fulfillments:
        return params.min_difficulty
    return max(params.min_difficulty, difficulty * prev_fulfillments // block_gap)


def record_fulfillments(state: OracleState, height: int, count: int) -> int:
    """
    Account for a batch of `count` fulfilments executing at `height`,
    retargeting first if this is a new block. Returns the (possibly new)
    difficulty.
    """
    if count < 0:
        raise ValueError("count must be >= 0")
    if height > state.latest_fulfillment_block:
        prev = state.fulfillments_at(state.latest_fulfillment_block)
        gap = height - state.latest_fulfillment_block
        old = state.difficulty
        state.difficulty = retarget(old, prev, gap, RetargetParams.from_oracle_params(state.params))
        state.latest_fulfillment_block = height
        if state.difficulty != old:
            log.info(
                "difficulty %d -> %d (prev_fulfillments=%d gap=%d height=%d)",
                old, state.difficulty, prev, gap, height,
            )
    state.block_fulfillments[height] = state.fulfillments_at(height) + count
    return state.difficulty


__all__ = [
    "RetargetParams",
    "initial_difficulty",
    "retarget",
    "record_fulfillments",
]
