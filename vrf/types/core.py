"""
Core typed primitives for the Native VRF oracle.

Types provided:
  • Address       — EIP-55 checksum address string
  • RequestId     — integer-typed request identifier (0 is the genesis random)
  • RequestStatus — lifecycle of a request id
  • Request       — read-only view of one request (absence is explicit)
  • Submission    — one solver-supplied (request, input, signature) triple
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NewType, Optional

# ---- Simple newtypes ---------------------------------------------------------

Address = NewType("Address", str)
RequestId = NewType("RequestId", int)


def _require_nonneg(name: str, v: int) -> None:
    if v < 0:
        raise ValueError(f"{name} must be non-negative (got {v})")


class RequestStatus(str, Enum):
    """Lifecycle of a request id."""

    UNKNOWN = "unknown"      # never created
    PENDING = "pending"      # created, no random yet
    FULFILLED = "fulfilled"  # random recorded


# ---- Records -----------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Request:
    """
    A request for one random value.

    Fields:
      id        — request identifier
      requester — address that created it (None for unknown ids and the genesis slot)
      reward    — escrowed reward still owed to the solver (0 once paid)
      random    — fulfilled random value, or None while pending
    """

    id: RequestId
    requester: Optional[Address]
    reward: int = 0
    random: Optional[int] = None

    def __post_init__(self) -> None:  # type: ignore[override]
        if not isinstance(self.id, int):
            raise TypeError("id must be an int (RequestId)")
        _require_nonneg("id", int(self.id))
        _require_nonneg("reward", int(self.reward))

    @property
    def status(self) -> RequestStatus:
        if self.random is not None:
            return RequestStatus.FULFILLED
        if self.requester is not None:
            return RequestStatus.PENDING
        return RequestStatus.UNKNOWN

    @property
    def fulfilled(self) -> bool:
        return self.random is not None


@dataclass(frozen=True, slots=True)
class Submission:
    """
    One element of a fulfilment batch.

    Fields:
      request_id — id being fulfilled
      input      — solver-chosen 256-bit integer
      signature  — 65-byte secp256k1 EIP-191 signature over the puzzle message
    """

    request_id: RequestId
    input: int
    signature: bytes

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_nonneg("request_id", int(self.request_id))
        _require_nonneg("input", int(self.input))
        if int(self.input) >> 256:
            raise ValueError("input must fit in 256 bits")
        if not isinstance(self.signature, (bytes, bytearray)):
            raise TypeError("signature must be bytes")


__all__ = ["Address", "RequestId", "RequestStatus", "Request", "Submission"]
