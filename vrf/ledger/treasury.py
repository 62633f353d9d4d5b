"""
vrf.ledger.treasury — deterministic native-coin balance ledger.

Balances are non-negative ints capped at 256 bits. Contracts never touch the
ledger directly; they go through :meth:`vrf.ledger.context.CallContext.transfer`,
which charges gas and debits the executing contract.

The ledger is snapshot/restored by :class:`vrf.ledger.chain.LocalChain` around
each transaction, so a failed transaction leaves balances untouched.
"""

from __future__ import annotations

from typing import Dict

from ..constants import UINT256_MAX
from ..errors import InsufficientBalance, VrfError


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise VrfError("amount must be int", code="invalid_amount")
    if amount < 0:
        raise VrfError("amount must be non-negative", code="invalid_amount")
    if amount > UINT256_MAX:
        raise VrfError("amount exceeds 256-bit limit", code="invalid_amount")


def _add_checked(a: int, b: int) -> int:
    c = a + b
    if c > UINT256_MAX:
        raise VrfError("balance overflow", code="balance_overflow")
    return c


class Treasury:
    """In-memory address → balance map."""

    def __init__(self) -> None:
        self._balances: Dict[str, int] = {}

    def balance_of(self, addr: str) -> int:
        return self._balances.get(addr, 0)

    def credit(self, addr: str, amount: int) -> None:
        _check_amount(amount)
        self._balances[addr] = _add_checked(self._balances.get(addr, 0), amount)

    def debit(self, addr: str, amount: int) -> None:
        _check_amount(amount)
        cur = self._balances.get(addr, 0)
        if amount > cur:
            raise InsufficientBalance(
                context={"address": addr, "balance": cur, "amount": amount}
            )
        self._balances[addr] = cur - amount

    def transfer(self, frm: str, to: str, amount: int) -> None:
        """Debit `frm` then credit `to`; a zero amount is a no-op."""
        _check_amount(amount)
        if amount == 0:
            return
        self.debit(frm, amount)
        self.credit(to, amount)

    # ---- checkpoints ----

    def snapshot(self) -> Dict[str, int]:
        return dict(self._balances)

    def restore(self, snap: Dict[str, int]) -> None:
        self._balances = dict(snap)


__all__ = ["Treasury"]
