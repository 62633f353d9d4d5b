"""
vrf.ledger.chain — a deterministic, in-process ledger.

LocalChain executes contract objects the way a single-node EVM devnet would:

* Transactions execute inside the *pending* block. With ``automine=True``
  (the default) every transaction seals its own block; with
  ``automine=False`` transactions share the pending block until
  :meth:`LocalChain.mine` is called.
* Every transaction is atomic. The target contract's state, all balances and
  the events it emitted are snapshot before execution and restored on any
  exception; a failed receipt (status 0, revert reason) is recorded and the
  exception is re-raised to the caller.
* :meth:`LocalChain.call` runs a read-only call against the pending block and
  always discards its effects.

Contracts are plain Python objects. A deployment calls
``factory(ctx, *args)``; a transaction calls ``getattr(contract, method)(ctx,
*args)`` with a fresh :class:`~vrf.ledger.context.CallContext`.
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from eth_abi.packed import encode_packed
from eth_utils import keccak

from .. import constants as C
from ..config import ChainConfig
from ..errors import VrfError
from ..utils.hash import normalize_address
from .context import BlockEnv, CallContext, TxEnv, to_hex
from .events import Event, EventLog
from .gas import GasMeter
from .treasury import Treasury

log = logging.getLogger("vrf.ledger.chain")

DEFAULT_COINBASE = normalize_address("0x" + "00" * 18 + "c0de")
_ZERO_HASH = b"\x00" * 32


@dataclass(frozen=True)
class Receipt:
    """Outcome of one transaction."""

    tx_hash: bytes
    status: int
    block_height: int
    gas_used: int
    to: Optional[str] = None
    return_value: Any = None
    events: List[Event] = field(default_factory=list)
    revert_reason: Optional[str] = None
    error_code: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tx_hash": to_hex(self.tx_hash),
            "status": self.status,
            "block_height": self.block_height,
            "gas_used": self.gas_used,
            "to": self.to,
            "revert_reason": self.revert_reason,
            "error_code": self.error_code,
            "events": [e.to_dict() for e in self.events],
        }


class LocalChain:
    """
    Deterministic single-node ledger.

        chain = LocalChain(ChainConfig(automine=True))
        chain.fund(alice, 10**18)
        oracle = chain.deploy(NativeVRF, 12345, sender=alice)
        rcpt = chain.transact(oracle, "request_random", 1, sender=alice, value=10**15)
    """

    def __init__(self, config: Optional[ChainConfig] = None, *, coinbase: str = DEFAULT_COINBASE) -> None:
        self.config = config or ChainConfig()
        self.config.validate()
        self.coinbase = normalize_address(coinbase)
        self.treasury = Treasury()
        self.events = EventLog()
        self.automine = self.config.automine

        self._lock = threading.RLock()
        self._contracts: Dict[str, Any] = {}
        self._nonces: Dict[str, int] = {}
        self._receipts: Dict[bytes, Receipt] = {}
        self._blocks: List[BlockEnv] = []
        self._block_txs: Dict[int, List[bytes]] = {}

        genesis = self._make_block(0, _ZERO_HASH)
        self._blocks.append(genesis)
        self._block_txs[0] = []
        self._pending = self._make_block(1, genesis.block_hash())
        self._block_txs[1] = []

    # ---- blocks ----

    def _make_block(self, height: int, prev_hash: bytes) -> BlockEnv:
        return BlockEnv(
            height=height,
            timestamp=self.config.genesis_time + height * self.config.block_time_s,
            coinbase=self.coinbase,
            chain_id=self.config.chain_id,
            prev_hash=prev_hash,
            prevrandao=BlockEnv.derive_prevrandao(prev_hash, height),
        )

    @property
    def head(self) -> BlockEnv:
        """Last sealed block."""
        return self._blocks[-1]

    @property
    def pending(self) -> BlockEnv:
        """Block that the next transaction executes in."""
        return self._pending

    @property
    def height(self) -> int:
        return self.head.height

    def block(self, height: int) -> BlockEnv:
        if height == self._pending.height:
            return self._pending
        return self._blocks[height]

    def block_transactions(self, height: int) -> List[bytes]:
        return list(self._block_txs.get(height, []))

    def mine(self, n: int = 1) -> BlockEnv:
        """Seal `n` blocks (the pending one first); returns the new head."""
        if n < 1:
            raise ValueError("n must be >= 1")
        with self._lock:
            for _ in range(n):
                sealed = self._pending
                self._blocks.append(sealed)
                self._pending = self._make_block(sealed.height + 1, sealed.block_hash())
                self._block_txs.setdefault(self._pending.height, [])
                log.debug("sealed block %d (%d txs)", sealed.height, len(self._block_txs[sealed.height]))
            return self.head

    # ---- accounts ----

    def fund(self, address: str, amount: int) -> None:
        """Genesis-style allocation outside any transaction."""
        with self._lock:
            self.treasury.credit(normalize_address(address), amount)

    def balance_of(self, address: str) -> int:
        return self.treasury.balance_of(normalize_address(address))

    def nonce_of(self, address: str) -> int:
        return self._nonces.get(normalize_address(address), 0)

    def contract(self, address: str) -> Any:
        return self._contracts[normalize_address(address)]

    def receipt(self, tx_hash: bytes) -> Receipt:
        return self._receipts[tx_hash]

    # ---- transactions ----

    def _tx_hash(self, origin: str, nonce: int, method: str, value: int) -> bytes:
        return keccak(
            encode_packed(
                ["uint256", "address", "uint256", "string", "uint256"],
                [self.config.chain_id, origin, nonce, method, value],
            )
        )

    def _contract_address(self, deployer: str, nonce: int) -> str:
        return normalize_address(keccak(encode_packed(["address", "uint256"], [deployer, nonce]))[12:])

    def deploy(
        self,
        factory: Callable[..., Any],
        *args: Any,
        sender: str,
        value: int = 0,
        gas_limit: Optional[int] = None,
        gas_price: Optional[int] = None,
    ) -> str:
        """Construct a contract via ``factory(ctx, *args)``; returns its address."""
        with self._lock:
            origin = normalize_address(sender)
            nonce = self._nonces.get(origin, 0)
            address = self._contract_address(origin, nonce)
            holder: Dict[str, Any] = {}

            def _construct(ctx: CallContext) -> None:
                holder["contract"] = factory(ctx, *args)

            self._execute(
                origin=origin,
                sender=origin,
                to=address,
                method="constructor",
                body=_construct,
                value=value,
                gas_limit=gas_limit,
                gas_price=gas_price,
                snapshot_target=None,
            )
            self._contracts[address] = holder["contract"]
            log.info("deployed %s at %s", type(holder["contract"]).__name__, address)
            return address

    def transact(
        self,
        address: str,
        method: str,
        *args: Any,
        sender: str,
        value: int = 0,
        gas_limit: Optional[int] = None,
        gas_price: Optional[int] = None,
        relay: Optional[str] = None,
    ) -> Receipt:
        """
        Send a state-changing transaction from `sender`.

        `relay`, when given, is the address of an intermediate contract the
        call is routed through: the oracle then sees ``sender == relay`` while
        ``origin`` stays the signing account.
        """
        with self._lock:
            target = normalize_address(address)
            contract = self._contracts[target]
            fn = self._resolve(contract, method)
            origin = normalize_address(sender)
            immediate = normalize_address(relay) if relay is not None else origin
            return self._execute(
                origin=origin,
                sender=immediate,
                to=target,
                method=method,
                body=lambda ctx: fn(ctx, *args),
                value=value,
                gas_limit=gas_limit,
                gas_price=gas_price,
                snapshot_target=contract,
            )

    def call(self, address: str, method: str, *args: Any, sender: Optional[str] = None) -> Any:
        """
        Read-only call against the pending block; all effects are discarded.

        Gas is metered exactly as for a transaction with the default limit and
        price, so a state-changing method can be dry-run to preview its result.
        """
        with self._lock:
            target = normalize_address(address)
            contract = self._contracts[target]
            fn = self._resolve(contract, method)
            caller = normalize_address(sender) if sender is not None else normalize_address(C.ZERO_ADDRESS)
            saved_state = copy.deepcopy(vars(contract))
            saved_balances = self.treasury.snapshot()
            ctx = CallContext(
                block=self._pending,
                tx=TxEnv(
                    tx_hash=_ZERO_HASH,
                    origin=caller,
                    sender=caller,
                    to=target,
                    gas_price=self.config.gas_price,
                    gas_limit=self.config.gas_limit,
                ),
                gas=GasMeter(limit=self.config.gas_limit),
                treasury=self.treasury,
                address=target,
                dry_run=True,
            )
            try:
                ctx.gas.consume(C.GAS_TX_BASE)
                return fn(ctx, *args)
            finally:
                vars(contract).clear()
                vars(contract).update(saved_state)
                self.treasury.restore(saved_balances)

    @staticmethod
    def _resolve(contract: Any, method: str) -> Callable[..., Any]:
        if method.startswith("_"):
            raise AttributeError(f"{method!r} is not a public method")
        fn = getattr(contract, method, None)
        if not callable(fn):
            raise AttributeError(f"{type(contract).__name__} has no method {method!r}")
        return fn

    def _execute(
        self,
        *,
        origin: str,
        sender: str,
        to: str,
        method: str,
        body: Callable[[CallContext], Any],
        value: int,
        gas_limit: Optional[int],
        gas_price: Optional[int],
        snapshot_target: Any,
    ) -> Receipt:
        nonce = self._nonces.get(origin, 0)
        self._nonces[origin] = nonce + 1
        tx_hash = self._tx_hash(origin, nonce, method, value)
        block = self._pending
        tx = TxEnv(
            tx_hash=tx_hash,
            origin=origin,
            sender=sender,
            to=to,
            value=value,
            gas_price=self.config.gas_price if gas_price is None else gas_price,
            gas_limit=self.config.gas_limit if gas_limit is None else gas_limit,
        )
        gas = GasMeter(limit=tx.gas_limit)
        ctx = CallContext(block=block, tx=tx, gas=gas, treasury=self.treasury, address=to)

        saved_state = copy.deepcopy(vars(snapshot_target)) if snapshot_target is not None else None
        saved_balances = self.treasury.snapshot()
        self._block_txs[block.height].append(tx_hash)

        try:
            gas.consume(C.GAS_TX_BASE)
            self.treasury.transfer(origin, to, value)
            result = body(ctx)
        except Exception as exc:
            if saved_state is not None:
                vars(snapshot_target).clear()
                vars(snapshot_target).update(saved_state)
            self.treasury.restore(saved_balances)
            reason = exc.message if isinstance(exc, VrfError) else str(exc)
            code = exc.code if isinstance(exc, VrfError) else type(exc).__name__
            self._receipts[tx_hash] = Receipt(
                tx_hash=tx_hash,
                status=0,
                block_height=block.height,
                gas_used=gas.used,
                to=to,
                revert_reason=reason,
                error_code=code,
            )
            log.debug("tx %s %s reverted: %s", to_hex(tx_hash)[:10], method, reason)
            if isinstance(exc, VrfError):
                exc.context.setdefault("tx_hash", to_hex(tx_hash))
                exc.context.setdefault("block_height", block.height)
            if self.automine:
                self.mine(1)
            raise

        committed = self.events.commit(ctx.pending_events, block_height=block.height, tx_hash=tx_hash)
        receipt = Receipt(
            tx_hash=tx_hash,
            status=1,
            block_height=block.height,
            gas_used=gas.used,
            to=to,
            return_value=result,
            events=committed,
        )
        self._receipts[tx_hash] = receipt
        log.debug("tx %s %s ok gas=%d events=%d", to_hex(tx_hash)[:10], method, gas.used, len(committed))
        if self.automine:
            self.mine(1)
        return receipt


__all__ = ["LocalChain", "Receipt", "DEFAULT_COINBASE"]
