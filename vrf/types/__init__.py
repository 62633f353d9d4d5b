from __future__ import annotations

"""
Public type surface for vrf.types.

Usage:
    from vrf.types import Request, OracleState
"""

from .core import Address, Request, RequestId, RequestStatus, Submission
from .state import OracleState

__all__ = [
    "Address",
    "RequestId",
    "RequestStatus",
    "Request",
    "Submission",
    "OracleState",
]
