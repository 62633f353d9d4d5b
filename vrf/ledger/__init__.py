"""
In-process ledger the oracle executes on: blocks, transactions, gas, balances
and events, with atomic per-transaction rollback.
"""

from .chain import DEFAULT_COINBASE, LocalChain, Receipt
from .context import BlockEnv, CallContext, TxEnv
from .events import Event, EventLog
from .gas import GasMeter
from .treasury import Treasury

__all__ = [
    "LocalChain",
    "Receipt",
    "DEFAULT_COINBASE",
    "BlockEnv",
    "TxEnv",
    "CallContext",
    "Event",
    "EventLog",
    "GasMeter",
    "Treasury",
]
