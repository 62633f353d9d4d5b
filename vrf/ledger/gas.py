"""
vrf.ledger.gas — deterministic gas metering with out-of-gas semantics.

- Gas is charged *before* executing an operation.
- If the meter would exceed its limit, :class:`vrf.errors.OutOfGas` is raised
  and the meter is left unchanged; the ledger then rolls the whole
  transaction back.
- Nothing is ever billed: gas only bounds execution, and ``remaining`` is
  exposed to contracts as the "remaining execution budget".
"""
from __future__ import annotations

from ..errors import OutOfGas


class GasMeter:
    """
    Deterministic gas meter.

        gm = GasMeter(limit=500_000)
        gm.consume(21_000)
        gm.remaining   # 479_000

    `used` is monotonically non-decreasing; `remaining` never goes below zero.
    """

    __slots__ = ("_limit", "_used")

    def __init__(self, *, limit: int) -> None:
        self._limit = self._require_int_ge(limit, 0, "limit")
        self._used = 0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def used(self) -> int:
        return self._used

    @property
    def remaining(self) -> int:
        return self._limit - self._used

    def consume(self, amount: int) -> None:
        """Charge `amount` gas; raise OutOfGas if this would exceed the limit."""
        amt = self._require_int_ge(amount, 0, "consume amount")
        new_used = self._used + amt
        if new_used > self._limit:
            raise OutOfGas(
                f"OutOfGas: need {amt} (used {self._used}, limit {self._limit})",
                context={"need": amt, "used": self._used, "limit": self._limit},
            )
        self._used = new_used

    @staticmethod
    def _require_int_ge(v: int, lb: int, name: str) -> int:
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError(f"{name} must be int, got {type(v).__name__}")
        if v < lb:
            raise ValueError(f"{name} must be >= {lb}, got {v}")
        return v

    def __repr__(self) -> str:  # pragma: no cover
        return f"GasMeter(limit={self._limit}, used={self._used})"


__all__ = ["GasMeter"]
