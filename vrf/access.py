"""
Access control: a single owner plus a requester whitelist.

Only the owner may change whitelist membership, hand over ownership or
rotate the global salt. Adding the zero address, re-adding a member and
removing a non-member all fail.
"""

from __future__ import annotations

import logging

from . import constants as C
from .errors import (AlreadyWhitelisted, NotListed, NotOwner, NotWhitelisted,
                     ZeroAddress, require)
from .ledger.context import CallContext
from .types.core import Address
from .types.state import OracleState
from .utils.hash import is_zero_address, normalize_address

log = logging.getLogger("vrf.access")


def require_owner(ctx: CallContext, state: OracleState) -> None:
    ctx.charge(C.GAS_SLOAD)
    require(ctx.msg_sender == state.owner, NotOwner(context={"caller": ctx.msg_sender}))


def require_whitelisted(ctx: CallContext, state: OracleState) -> None:
    ctx.charge(C.GAS_SLOAD)
    require(ctx.msg_sender in state.whitelist, NotWhitelisted(context={"caller": ctx.msg_sender}))


def whitelist_address(ctx: CallContext, state: OracleState, account: str) -> Address:
    require_owner(ctx, state)
    require(not is_zero_address(account), ZeroAddress())
    addr = Address(normalize_address(account))
    ctx.charge(C.GAS_SLOAD)
    require(addr not in state.whitelist, AlreadyWhitelisted(context={"account": addr}))
    ctx.charge(C.GAS_SSTORE)
    state.whitelist.add(addr)
    ctx.emit("AddressWhitelisted", account=addr)
    log.debug("whitelisted %s", addr)
    return addr


def delist_address(ctx: CallContext, state: OracleState, account: str) -> Address:
    require_owner(ctx, state)
    addr = Address(normalize_address(account))
    ctx.charge(C.GAS_SLOAD)
    require(addr in state.whitelist, NotListed(context={"account": addr}))
    ctx.charge(C.GAS_SSTORE)
    state.whitelist.discard(addr)
    ctx.emit("AddressDelisted", account=addr)
    log.debug("delisted %s", addr)
    return addr


def transfer_ownership(ctx: CallContext, state: OracleState, new_owner: str) -> Address:
    require_owner(ctx, state)
    require(not is_zero_address(new_owner), ZeroAddress(C.ERR_TRANSFER_ZERO))
    previous = state.owner
    ctx.charge(C.GAS_SSTORE)
    state.owner = Address(normalize_address(new_owner))
    ctx.emit("OwnershipTransferred", previousOwner=previous, newOwner=state.owner)
    log.info("ownership %s -> %s", previous, state.owner)
    return state.owner


__all__ = [
    "require_owner",
    "require_whitelisted",
    "whitelist_address",
    "delist_address",
    "transfer_ownership",
]
