"""
Prometheus metrics for the fulfiller.

- rounds_total{outcome}       (Counter): polling rounds by outcome
- submissions_total{outcome}  (Counter): fulfilment transactions by outcome
- search_attempts             (Histogram): candidates tried per solved round
- search_seconds              (Histogram): wall time per search

A scrape endpoint can be started with :func:`maybe_start_http_endpoint`.
"""

from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import REGISTRY, Counter, Histogram, start_http_server

log = logging.getLogger("fulfiller.metrics")

_ROUND_OUTCOMES = (
    "idle",        # nothing to fulfil
    "confirmed",   # our submission was included
    "lost_race",   # state-consistency rejection (someone else won)
    "stale",       # cryptographic rejection; difficulty/height snapshot outdated
    "exhausted",   # attempt budget spent
    "failed",      # transaction-level failure
)

_SUBMIT_OUTCOMES = ("accepted", "reverted", "skipped")

_ATTEMPT_BUCKETS = (1, 10, 100, 500, 1_000, 2_500, 5_000, 10_000, 50_000, 100_000, 1_000_000)
_SECONDS_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)


class Metrics:
    def __init__(
        self,
        *,
        namespace: str = "native_vrf",
        subsystem: str = "fulfiller",
        registry=REGISTRY,
    ) -> None:
        self.registry = registry
        self.rounds_total = Counter(
            "rounds_total",
            "Polling rounds, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.submissions_total = Counter(
            "submissions_total",
            "Fulfilment submissions, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.search_attempts = Histogram(
            "search_attempts",
            "Candidate inputs tried per solved round.",
            buckets=_ATTEMPT_BUCKETS,
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.search_seconds = Histogram(
            "search_seconds",
            "Wall-clock time spent searching (seconds).",
            buckets=_SECONDS_BUCKETS,
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_round(self, outcome: str) -> None:
        if outcome not in _ROUND_OUTCOMES:
            outcome = "failed"
        self.rounds_total.labels(outcome=outcome).inc()

    def record_submission(self, outcome: str) -> None:
        if outcome not in _SUBMIT_OUTCOMES:
            outcome = "reverted"
        self.submissions_total.labels(outcome=outcome).inc()

    def observe_search(self, attempts: int, seconds: float) -> None:
        self.search_attempts.observe(attempts)
        self.search_seconds.observe(float(seconds))


METRICS = Metrics()


def maybe_start_http_endpoint(port: Optional[int], addr: str = "127.0.0.1") -> bool:
    """Start prometheus_client's scrape server when `port` is set."""
    if not port:
        return False
    start_http_server(int(port), addr=addr)
    log.info("metrics endpoint on %s:%d", addr, port)
    return True


__all__ = ["Metrics", "METRICS", "maybe_start_http_endpoint", "_ROUND_OUTCOMES", "_SUBMIT_OUTCOMES"]
