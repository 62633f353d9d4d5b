"""
Puzzle search.

For a fixed snapshot of public oracle state, each candidate input ``i``
yields a deterministic message ``m(i)`` and a deterministic RFC 6979
signature ``σ(i)``; the candidate is valid when

    int(σ(i)[0:32]) mod difficulty == 0

so a solver expects ~difficulty attempts per solution. Candidates are pure
functions of (snapshot, key, i), so the space can be split across workers
freely; :func:`parallel_search` scans chunk waves and still returns the same
lowest valid input as the sequential :func:`search`.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from vrf.errors import SearchExhausted
from vrf.puzzle import message_hash
from vrf.utils.sig import meets_difficulty, sign_message_hash, signature_value

log = logging.getLogger("fulfiller.search")

KeyLike = Union[str, bytes]


@dataclass(frozen=True)
class PuzzleSnapshot:
    """
    Public state a search is pinned to.

    prev_random — random result of request_id - 1
    request_id  — target request
    sender      — solver address (must sign with the matching key)
    nonce       — solver's current nonce
    height      — block the submission is expected to execute in
    difficulty  — divisor the signature value must be a multiple of
    """

    prev_random: int
    request_id: int
    sender: str
    nonce: int
    height: int
    difficulty: int

    def message(self, input: int) -> bytes:
        return message_hash(self.prev_random, input, self.request_id, self.sender, self.nonce, self.height)


@dataclass(frozen=True)
class Solution:
    input: int
    signature: bytes
    value: int
    attempts: int
    elapsed_s: float = 0.0


def _try(snapshot: PuzzleSnapshot, key: KeyLike, candidate: int) -> Optional[Tuple[bytes, int]]:
    sig = sign_message_hash(snapshot.message(candidate), key)
    value = signature_value(sig)
    if meets_difficulty(value, snapshot.difficulty):
        return sig, value
    return None


def search(
    snapshot: PuzzleSnapshot,
    key: KeyLike,
    *,
    start: int = 0,
    max_attempts: int = 1_000_000,
) -> Solution:
    """Try inputs start, start+1, … and return the first valid one."""
    t0 = time.perf_counter()
    for n, candidate in enumerate(range(start, start + max_attempts), start=1):
        hit = _try(snapshot, key, candidate)
        if hit is not None:
            sig, value = hit
            return Solution(candidate, sig, value, n, time.perf_counter() - t0)
    raise SearchExhausted(
        context={
            "request_id": snapshot.request_id,
            "attempts": max_attempts,
            "difficulty": snapshot.difficulty,
        }
    )


def _scan_chunk(snapshot: PuzzleSnapshot, key: KeyLike, lo: int, hi: int) -> Optional[Tuple[int, bytes, int]]:
    for candidate in range(lo, hi):
        hit = _try(snapshot, key, candidate)
        if hit is not None:
            return candidate, hit[0], hit[1]
    return None


def _make_executor(kind: str, workers: int) -> Executor:
    if kind == "process":
        return ProcessPoolExecutor(max_workers=workers)
    return ThreadPoolExecutor(max_workers=workers)


def parallel_search(
    snapshot: PuzzleSnapshot,
    key: KeyLike,
    *,
    start: int = 0,
    max_attempts: int = 1_000_000,
    workers: int = 2,
    chunk_size: int = 256,
    executor: str = "thread",
) -> Solution:
    """
    Scan [start, start + max_attempts) in waves of `workers` chunks.

    Every chunk of a wave is scanned to completion before the lowest hit of
    the wave is taken, so the result matches :func:`search` exactly.
    """
    if workers <= 1:
        return search(snapshot, key, start=start, max_attempts=max_attempts)
    if chunk_size <= 0:
        raise ValueError("chunk_size must be > 0")

    t0 = time.perf_counter()
    end = start + max_attempts
    bounds: List[Tuple[int, int]] = [
        (lo, min(lo + chunk_size, end)) for lo in range(start, end, chunk_size)
    ]
    with _make_executor(executor, workers) as ex:
        for w in range(0, len(bounds), workers):
            wave = bounds[w:w + workers]
            futs = [ex.submit(_scan_chunk, snapshot, key, lo, hi) for lo, hi in wave]
            hits = [f.result() for f in futs]
            found = [h for h in hits if h is not None]
            if found:
                candidate, sig, value = min(found, key=lambda h: h[0])
                elapsed = time.perf_counter() - t0
                log.debug("parallel hit input=%d after %.3fs", candidate, elapsed)
                return Solution(candidate, sig, value, candidate - start + 1, elapsed)
    raise SearchExhausted(
        context={
            "request_id": snapshot.request_id,
            "attempts": max_attempts,
            "difficulty": snapshot.difficulty,
        }
    )


__all__ = ["PuzzleSnapshot", "Solution", "search", "parallel_search"]
