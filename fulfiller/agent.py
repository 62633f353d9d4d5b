"""
Fulfiller agent: the off-ledger solver loop.

State machine (one round per :meth:`Fulfiller.tick`)::

    IDLE → POLLING ─┬─ no gap ─────────────────────────────→ POLLING
                    └→ SOLVING → SUBMITTING → CONFIRMED | FAILED → POLLING

Error policy (none of these stop the loop):

* state-consistency rejections (request already fulfilled, predecessor open,
  not initialized) are expected under races: logged at INFO as ``lost_race``
* cryptographic rejections usually mean the difficulty/height snapshot went
  stale: logged at WARNING as ``stale``; the next tick re-reads everything
* search exhaustion: logged at WARNING, retried next tick
* transaction-level failures: logged at ERROR with code and context
* anything else raised during a round (a failed read, a broken search pool):
  logged with its traceback by :meth:`Fulfiller.run`, counted as failed

Cancellation is cooperative: :meth:`Fulfiller.run` checks its stop event at
the top of every iteration and an in-flight search or submission runs to
completion.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from vrf.errors import (CryptographicError, SearchExhausted,
                        StateConsistencyError, VrfError)

from .client import OracleClient
from .config import FulfillerConfig
from .metrics import METRICS, Metrics
from .search import PuzzleSnapshot, Solution, parallel_search, search
from .validate import preflight


class State(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    SOLVING = "solving"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class RoundResult:
    """Outcome of one polling round."""

    outcome: str
    request_id: Optional[int] = None
    input: Optional[int] = None
    random: Optional[int] = None
    attempts: int = 0
    tx_hash: Optional[bytes] = None
    error: Optional[str] = None

    @property
    def confirmed(self) -> bool:
        return self.outcome == "confirmed"


@dataclass
class FulfillerStats:
    rounds: int = 0
    confirmed: int = 0
    lost_races: int = 0
    stale: int = 0
    exhausted: int = 0
    failed: int = 0
    fulfilled_ids: List[int] = field(default_factory=list)


class Fulfiller:
    def __init__(
        self,
        client: OracleClient,
        config: Optional[FulfillerConfig] = None,
        *,
        metrics: Metrics = METRICS,
        name: Optional[str] = None,
    ) -> None:
        self.client = client
        self.cfg = config or FulfillerConfig()
        self.metrics = metrics
        self.stats = FulfillerStats()
        self.state = State.IDLE
        self._log = logging.getLogger(f"fulfiller.agent.{name}" if name else "fulfiller.agent")

    # ---- state machine ----

    def _enter(self, state: State) -> None:
        if state is not self.state:
            self._log.debug("%s -> %s", self.state.value, state.value)
        self.state = state

    def _finish(self, result: RoundResult) -> RoundResult:
        self.stats.rounds += 1
        self.metrics.record_round(result.outcome)
        self._enter(State.POLLING)
        return result

    def snapshot(self, request_id: int) -> PuzzleSnapshot:
        snap = PuzzleSnapshot(
            prev_random=self.client.random_result(request_id - 1),
            request_id=request_id,
            sender=self.client.address,
            nonce=self.client.nonce(),
            height=self.client.pending_height(),
            difficulty=self.client.difficulty(),
        )
        return snap

    def solve(self, snap: PuzzleSnapshot) -> Solution:
        if self.cfg.workers > 1:
            return parallel_search(
                snap,
                self.client.signing_key,
                start=self.cfg.start_input,
                max_attempts=self.cfg.max_attempts,
                workers=self.cfg.workers,
                chunk_size=self.cfg.chunk_size,
                executor=self.cfg.executor.value,
            )
        return search(snap, self.client.signing_key, start=self.cfg.start_input, max_attempts=self.cfg.max_attempts)

    def tick(self) -> RoundResult:
        """Run one polling round."""
        self._enter(State.POLLING)
        current = self.client.current_request_id()
        latest = self.client.latest_fulfill_id()
        if latest + 1 >= current:
            return self._finish(RoundResult("idle"))

        rid = latest + 1
        self._enter(State.SOLVING)
        snap = self.snapshot(rid)
        try:
            sol = self.solve(snap)
        except SearchExhausted as exc:
            self.stats.exhausted += 1
            self._log.warning(
                "search exhausted for request %d after %d attempts at difficulty %d",
                rid, self.cfg.max_attempts, snap.difficulty,
            )
            self._enter(State.FAILED)
            return self._finish(RoundResult("exhausted", request_id=rid, error=exc.code))
        self.metrics.observe_search(sol.attempts, sol.elapsed_s)
        self._log.debug("request %d solved input=%d attempts=%d", rid, sol.input, sol.attempts)

        try:
            preflight(self.client, snap, sol)
            self._enter(State.SUBMITTING)
            receipt = self.client.submit([rid], [sol.input], [sol.signature])
        except VrfError as exc:
            skipped = self.state is State.SOLVING
            self._enter(State.FAILED)
            return self._finish(self._rejected(rid, sol, exc, skipped=skipped))
        except Exception as exc:
            self.stats.failed += 1
            self.metrics.record_submission("reverted")
            self._log.exception("submission for request %d failed", rid)
            self._enter(State.FAILED)
            return self._finish(RoundResult("failed", request_id=rid, input=sol.input, error=str(exc)))

        self._enter(State.CONFIRMED)
        self.stats.confirmed += 1
        self.stats.fulfilled_ids.append(rid)
        self.metrics.record_submission("accepted")
        randoms = receipt.return_value or []
        random = randoms[0] if randoms else None
        self._log.info("fulfilled request %d input=%d block=%d", rid, sol.input, receipt.block_height)
        return self._finish(
            RoundResult(
                "confirmed",
                request_id=rid,
                input=sol.input,
                random=random,
                attempts=sol.attempts,
                tx_hash=receipt.tx_hash,
            )
        )

    def _rejected(self, rid: int, sol: Solution, exc: VrfError, *, skipped: bool) -> RoundResult:
        self.metrics.record_submission("skipped" if skipped else "reverted")
        if isinstance(exc, StateConsistencyError):
            self.stats.lost_races += 1
            self._log.info("request %d: %s (lost race)", rid, exc.message)
            outcome = "lost_race"
        elif isinstance(exc, CryptographicError):
            self.stats.stale += 1
            self._log.warning("request %d: %s; re-reading difficulty next tick", rid, exc.message)
            outcome = "stale"
        else:
            self.stats.failed += 1
            self._log.error("request %d: %s code=%s context=%s", rid, exc.message, exc.code, exc.context)
            outcome = "failed"
        return RoundResult(outcome, request_id=rid, input=sol.input, attempts=sol.attempts, error=exc.code)

    # ---- loop ----

    def run(self, stop: threading.Event, *, max_rounds: Optional[int] = None) -> FulfillerStats:
        """Poll until `stop` is set (or `max_rounds` rounds ran)."""
        self._log.info("fulfiller %s started poll_interval=%.2fs", self.client.address, self.cfg.poll_interval_s)
        rounds = 0
        while not stop.is_set():
            try:
                self.tick()
            except Exception:
                self.stats.failed += 1
                self._log.exception("round failed; re-polling next tick")
                self._enter(State.FAILED)
                self._finish(RoundResult("failed", error="round_error"))
            rounds += 1
            if max_rounds is not None and rounds >= max_rounds:
                break
            stop.wait(self.cfg.poll_interval_s)
        self._enter(State.IDLE)
        self._log.info("fulfiller %s stopped after %d rounds", self.client.address, rounds)
        return self.stats


__all__ = ["Fulfiller", "FulfillerStats", "RoundResult", "State"]
