"""
vrf.ledger.context — BlockEnv/TxEnv passed to contracts (deterministic)

These environments are injected into every contract call so the oracle can
read chain and transaction metadata deterministically. They hold only pure
data (ints, bytes, checksum address strings) and are validated on creation.

- ``BlockEnv.prevrandao`` is the per-block pseudo-random beacon; the ledger
  derives it as keccak(parent hash ‖ height).
- ``TxEnv.origin`` is the externally owned account that signed the
  transaction; ``TxEnv.sender`` is the immediate caller, which differs from
  the origin when a call is relayed through an intermediate contract.

:class:`CallContext` bundles both with the gas meter, the treasury and the
pending event buffer for the duration of one call.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from eth_abi.packed import encode_packed
from eth_utils import keccak

from .. import constants as C
from .events import PendingEvent, validate_event
from .gas import GasMeter
from .treasury import Treasury


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise TypeError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ValueError(f"{name} must be non-negative, got {v}")
    return v


def to_hex(b: bytes) -> str:
    return "0x" + bytes(b).hex()


# ----------------------------- models ------------------------------ #


@dataclass(frozen=True)
class BlockEnv:
    """
    Deterministic per-block environment.

    Fields
    ------
    height:      Block height (0 = genesis).
    timestamp:   Consensus timestamp in seconds.
    coinbase:    Block producer address.
    chain_id:    Integer chain identifier.
    prev_hash:   Parent block hash (32 bytes; zero for genesis).
    prevrandao:  Per-block pseudo-random beacon value.
    """

    height: int
    timestamp: int
    coinbase: str
    chain_id: int
    prev_hash: bytes = b"\x00" * 32
    prevrandao: int = 0

    def __post_init__(self) -> None:
        _require_non_negative_int("height", self.height)
        _require_non_negative_int("timestamp", self.timestamp)
        _require_non_negative_int("chain_id", self.chain_id)
        _require_non_negative_int("prevrandao", self.prevrandao)
        if len(self.prev_hash) != 32:
            raise ValueError("prev_hash must be 32 bytes")

    @staticmethod
    def derive_prevrandao(prev_hash: bytes, height: int) -> int:
        return int.from_bytes(keccak(encode_packed(["bytes32", "uint256"], [prev_hash, height])), "big")

    def block_hash(self) -> bytes:
        return keccak(
            encode_packed(
                ["uint256", "uint256", "address", "uint256", "bytes32", "uint256"],
                [self.height, self.timestamp, self.coinbase, self.chain_id, self.prev_hash, self.prevrandao],
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["prev_hash"] = to_hex(self.prev_hash)
        d["hash"] = to_hex(self.block_hash())
        return d


@dataclass(frozen=True)
class TxEnv:
    """
    Deterministic per-transaction environment.

    Fields
    ------
    tx_hash:   Transaction hash (32 bytes).
    origin:    Externally owned account that signed the transaction.
    sender:    Immediate caller (== origin unless relayed).
    to:        Call target, or None for deployments.
    value:     Native coin attached (wei).
    gas_price: Recorded price per gas unit; never charged.
    gas_limit: Execution budget.
    """

    tx_hash: bytes
    origin: str
    sender: str
    to: Optional[str]
    value: int = 0
    gas_price: int = C.DEFAULT_GAS_PRICE
    gas_limit: int = C.DEFAULT_GAS_LIMIT

    def __post_init__(self) -> None:
        if len(self.tx_hash) != 32:
            raise ValueError("tx_hash must be 32 bytes")
        _require_non_negative_int("value", self.value)
        _require_non_negative_int("gas_price", self.gas_price)
        _require_non_negative_int("gas_limit", self.gas_limit)

    @property
    def relayed(self) -> bool:
        return self.origin != self.sender

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["tx_hash"] = to_hex(self.tx_hash)
        return d


@dataclass
class CallContext:
    """
    Everything a contract method may touch during one call.

    Contracts read ``block``/``tx``, charge gas through :meth:`charge`, move
    coins with :meth:`transfer` and log with :meth:`emit`. Events stay in
    ``pending_events`` until the ledger commits the transaction. ``dry_run`` is
    set for read-only calls whose effects the ledger discards.
    """

    block: BlockEnv
    tx: TxEnv
    gas: GasMeter
    treasury: Treasury
    address: str
    pending_events: List[PendingEvent] = field(default_factory=list)
    dry_run: bool = False

    @property
    def msg_sender(self) -> str:
        return self.tx.sender

    @property
    def gas_left(self) -> int:
        return self.gas.remaining

    def charge(self, amount: int) -> None:
        self.gas.consume(amount)

    def emit(self, name: str, **args: Any) -> None:
        self.gas.consume(C.GAS_LOG)
        self.pending_events.append(validate_event(name, args))

    def balance(self) -> int:
        return self.treasury.balance_of(self.address)

    def transfer(self, to: str, amount: int) -> None:
        """Pay `amount` from this contract to `to`."""
        self.gas.consume(C.GAS_TRANSFER)
        self.treasury.transfer(self.address, to, amount)


__all__ = ["BlockEnv", "TxEnv", "CallContext", "to_hex"]
