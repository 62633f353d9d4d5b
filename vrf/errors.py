"""
Native VRF errors.

A small, typed hierarchy of exceptions raised by the oracle and its ledger.
Every error carries a machine-readable ``code``, a human-readable ``message``
(for on-ledger failures this is the revert reason string) and an optional
``context`` dict for debugging / RPC wiring.

Families:

  VrfError
    ├─ AuthorizationError         caller lacks the required role
    │    ├─ NotOwner
    │    └─ NotWhitelisted
    ├─ ValidationError            malformed or out-of-range arguments
    │    ├─ RewardTooLow, ZeroCount, ZeroAddress
    │    ├─ AlreadyWhitelisted, NotListed
    │    └─ EmptyBatch, LengthMismatch, NotDirectCall
    ├─ StateConsistencyError      request not in the right lifecycle state
    │    ├─ RequestNotInitialized
    │    ├─ AlreadyFulfilled
    │    └─ PredecessorUnfulfilled
    ├─ CryptographicError         submission failed signature / puzzle checks
    │    ├─ InvalidSignature
    │    └─ InvalidRandomInput
    ├─ ExecutionError             transaction-level failures
    │    ├─ OutOfGas
    │    └─ InsufficientBalance
    └─ SearchExhausted            solver-local: attempt budget spent

State-consistency errors are expected under contention (two solvers racing
for the same request) and solvers treat them as benign.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from . import constants as C


class VrfError(Exception):
    """Base class for all Native VRF errors."""

    code: str = "vrf_error"
    default_message: str = ""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        context: Optional[Mapping[str, Any]] = None,
    ) -> None:
        msg = self.default_message if message is None else str(message)
        super().__init__(msg)
        self.message = msg
        if code is not None:
            self.code = code
        self.context: Dict[str, Any] = dict(context or {})

    @property
    def reason(self) -> str:
        """Revert reason as surfaced in failed receipts."""
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }

    def __repr__(self) -> str:  # pragma: no cover - trivial formatting
        ctx = f" context={self.context}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r} message={self.message!r}{ctx})"


# ---- authorization ----


class AuthorizationError(VrfError):
    code = "unauthorized"


class NotOwner(AuthorizationError):
    code = "not_owner"
    default_message = C.ERR_NOT_OWNER


class NotWhitelisted(AuthorizationError):
    code = "not_whitelisted"
    default_message = C.ERR_NOT_WHITELISTED


# ---- validation ----


class ValidationError(VrfError):
    code = "invalid_argument"


class RewardTooLow(ValidationError):
    code = "reward_too_low"
    default_message = C.ERR_REWARD_TOO_LOW


class ZeroCount(ValidationError):
    code = "zero_count"
    default_message = C.ERR_ZERO_COUNT


class ZeroAddress(ValidationError):
    code = "zero_address"
    default_message = C.ERR_WHITELIST_ZERO


class AlreadyWhitelisted(ValidationError):
    code = "already_whitelisted"
    default_message = C.ERR_ALREADY_WHITELISTED


class NotListed(ValidationError):
    code = "not_listed"
    default_message = C.ERR_NOT_WHITELISTED


class EmptyBatch(ValidationError):
    code = "empty_batch"
    default_message = C.ERR_EMPTY_BATCH


class LengthMismatch(ValidationError):
    code = "length_mismatch"
    default_message = C.ERR_LENGTH_MISMATCH


class NotDirectCall(ValidationError):
    code = "not_direct_call"
    default_message = C.ERR_NOT_EOA


# ---- state consistency ----


class StateConsistencyError(VrfError):
    code = "state_conflict"


class RequestNotInitialized(StateConsistencyError):
    code = "not_initialized"
    default_message = C.ERR_NOT_INITIALIZED


class AlreadyFulfilled(StateConsistencyError):
    code = "already_fulfilled"
    default_message = C.ERR_ALREADY_FULFILLED


class PredecessorUnfulfilled(StateConsistencyError):
    code = "predecessor_unfulfilled"
    default_message = C.ERR_PREDECESSOR_UNFULFILLED


# ---- cryptographic ----


class CryptographicError(VrfError):
    code = "crypto"


class InvalidSignature(CryptographicError):
    code = "invalid_signature"
    default_message = C.ERR_INVALID_SIGNATURE


class InvalidRandomInput(CryptographicError):
    code = "invalid_random_input"
    default_message = C.ERR_INVALID_INPUT


# ---- execution ----


class ExecutionError(VrfError):
    code = "execution"


class OutOfGas(ExecutionError):
    code = "out_of_gas"
    default_message = "OutOfGas"


class InsufficientBalance(ExecutionError):
    code = "insufficient_balance"
    default_message = "insufficient balance"


# ---- solver ----


class SearchExhausted(VrfError):
    """Raised by the solver when no valid input was found within budget."""

    code = "search_exhausted"
    default_message = "no valid input within attempt budget"


def require(condition: bool, error: VrfError) -> None:
    """
    Assertion helper for oracle code paths.

        require(amount >= params.min_reward, RewardTooLow())
    """
    if condition:
        return
    raise error


__all__ = [
    "VrfError",
    "AuthorizationError",
    "NotOwner",
    "NotWhitelisted",
    "ValidationError",
    "RewardTooLow",
    "ZeroCount",
    "ZeroAddress",
    "AlreadyWhitelisted",
    "NotListed",
    "EmptyBatch",
    "LengthMismatch",
    "NotDirectCall",
    "StateConsistencyError",
    "RequestNotInitialized",
    "AlreadyFulfilled",
    "PredecessorUnfulfilled",
    "CryptographicError",
    "InvalidSignature",
    "InvalidRandomInput",
    "ExecutionError",
    "OutOfGas",
    "InsufficientBalance",
    "SearchExhausted",
    "require",
]
