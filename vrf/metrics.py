"""
Prometheus metrics for the Native VRF oracle.

Instruments:
  • requests_total                 — random values requested (one per id)
  • fulfillments_total{outcome}    — fulfilment batches by outcome
  • fulfilled_requests_total       — request ids settled
  • difficulty                     — current puzzle difficulty (gauge)
  • rewards_paid_wei_total         — cumulative rewards paid to solvers

Label cardinality is kept low: the only label is `outcome`, drawn from a
small fixed vocabulary.

Usage
-----
    from vrf.metrics import METRICS

    METRICS.record_requests(3)
    METRICS.record_fulfillment("accepted", count=2)
    METRICS.set_difficulty(1500)
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Gauge

_FULFILL_OUTCOMES = (
    "accepted",        # batch settled
    "unauthorized",    # caller lacks a role
    "invalid",         # relayed call, empty batch, length mismatch
    "state_conflict",  # not initialized / already fulfilled / predecessor open
    "crypto",          # invalid signature / input does not meet difficulty
    "execution",       # out of gas / balance
)


class Metrics:
    """
    Container for the oracle's Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "native_vrf",
        subsystem: str = "oracle",
        registry=REGISTRY,
    ) -> None:
        self.requests_total = Counter(
            "requests_total",
            "Number of random values requested.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.fulfillments_total = Counter(
            "fulfillments_total",
            "Fulfilment batches processed, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.fulfilled_requests_total = Counter(
            "fulfilled_requests_total",
            "Number of request ids settled.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.rewards_paid_wei_total = Counter(
            "rewards_paid_wei_total",
            "Cumulative rewards paid to solvers (wei).",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.difficulty = Gauge(
            "difficulty",
            "Current puzzle difficulty.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    def record_requests(self, count: int) -> None:
        self.requests_total.inc(count)

    def record_fulfillment(self, outcome: str, *, count: int = 0, paid: int = 0) -> None:
        """
        Record one fulfilment batch. `count`/`paid` only apply to accepted batches.
        """
        if outcome not in _FULFILL_OUTCOMES:
            outcome = "invalid"
        self.fulfillments_total.labels(outcome=outcome).inc()
        if outcome == "accepted":
            if count:
                self.fulfilled_requests_total.inc(count)
            if paid:
                self.rewards_paid_wei_total.inc(paid)

    def set_difficulty(self, value: int) -> None:
        self.difficulty.set(value)


# Singleton used by most components
METRICS = Metrics()

__all__ = ["Metrics", "METRICS", "_FULFILL_OUTCOMES"]
