"""
Ledger-facing client used by the solver.

:class:`OracleClient` is the narrow surface the solver needs: read the
oracle's public accessors, ask it for the puzzle message (so a local hash
implementation can be checked for drift), and submit a fulfilment batch.

:class:`LocalOracleClient` binds that surface to a
:class:`vrf.ledger.LocalChain` and an ``eth_account`` signing key.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from eth_account import Account
from eth_account.signers.local import LocalAccount

from vrf.ledger import LocalChain, Receipt
from vrf.utils.hash import normalize_address


@runtime_checkable
class OracleClient(Protocol):
    """What a solver needs from the ledger."""

    @property
    def address(self) -> str: ...

    def current_request_id(self) -> int: ...

    def latest_fulfill_id(self) -> int: ...

    def difficulty(self) -> int: ...

    def random_result(self, request_id: int) -> int: ...

    def request_initializer(self, request_id: int) -> str: ...

    @property
    def signing_key(self) -> str: ...

    def nonce(self) -> int: ...

    def pending_height(self) -> int: ...

    def message_hash(self, request_id: int, input: int) -> bytes: ...

    def submit(self, request_ids: Sequence[int], inputs: Sequence[int], signatures: Sequence[bytes]) -> Receipt: ...


class LocalOracleClient:
    """
    OracleClient over an in-process LocalChain.

    ``submit`` blocks until the transaction is included; a revert surfaces as
    the oracle's :class:`vrf.errors.VrfError`.
    """

    def __init__(self, chain: LocalChain, oracle: str, private_key: str, *, gas_limit: int = 500_000) -> None:
        self.chain = chain
        self.oracle = normalize_address(oracle)
        self._account: LocalAccount = Account.from_key(private_key)
        self.gas_limit = gas_limit

    @property
    def address(self) -> str:
        return normalize_address(self._account.address)

    @property
    def signing_key(self) -> str:
        return "0x" + bytes(self._account.key).hex()

    def _view(self, method: str, *args):
        return self.chain.call(self.oracle, method, *args, sender=self.address)

    def current_request_id(self) -> int:
        return self._view("current_request_id")

    def latest_fulfill_id(self) -> int:
        return self._view("latest_fulfill_id")

    def difficulty(self) -> int:
        return self._view("difficulty")

    def random_result(self, request_id: int) -> int:
        return self._view("random_results", request_id)

    def request_initializer(self, request_id: int) -> str:
        return self._view("request_initializers", request_id)

    def nonce(self) -> int:
        return self._view("get_nonce", self.address)

    def pending_height(self) -> int:
        return self.chain.pending.height

    def message_hash(self, request_id: int, input: int) -> bytes:
        return self._view("get_message_hash", request_id, input)

    def submit(self, request_ids: Sequence[int], inputs: Sequence[int], signatures: Sequence[bytes]) -> Receipt:
        return self.chain.transact(
            self.oracle,
            "fulfill_randomness",
            list(request_ids),
            list(inputs),
            list(signatures),
            sender=self.address,
            gas_limit=self.gas_limit,
        )


__all__ = ["OracleClient", "LocalOracleClient"]
