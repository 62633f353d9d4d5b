"""
vrf.utils.hash
==============

Keccak-256 helpers shared by the oracle and the solver.

All on-ledger digests are Keccak-256 over Solidity-style *packed* encodings
(``abi.encodePacked``): integers as 32-byte big-endian words, addresses as
20 raw bytes, dynamic ``bytes`` unpadded. Using ``eth_abi.packed`` keeps the
byte layout identical to what an EVM contract would hash.

Key pieces
----------
- :func:`solidity_keccak`: digest of a typed, packed tuple.
- :func:`hash_to_int`: big-endian integer view of a 32-byte digest.
- :func:`normalize_address` / :func:`is_zero_address`: canonical address form.
"""

from __future__ import annotations

from typing import Any, Sequence, Union

from eth_abi.packed import encode_packed
from eth_utils import is_address, keccak, to_checksum_address

from ..constants import ZERO_ADDRESS

BytesLike = Union[bytes, bytearray, memoryview]

__all__ = [
    "solidity_keccak",
    "hash_to_int",
    "normalize_address",
    "is_zero_address",
]


def solidity_keccak(types: Sequence[str], values: Sequence[Any]) -> bytes:
    """
    Keccak-256 of ``abi.encodePacked(values...)`` typed by ``types``.

        solidity_keccak(["uint256", "address"], [7, "0x…"])
    """
    if len(types) != len(values):
        raise ValueError("types/values length mismatch")
    return keccak(encode_packed(list(types), list(values)))


def hash_to_int(digest: BytesLike) -> int:
    """Interpret a digest (or any byte string) as a big-endian unsigned int."""
    return int.from_bytes(bytes(digest), "big")


def normalize_address(addr: Union[str, bytes]) -> str:
    """Return the EIP-55 checksum form of a 20-byte address."""
    if isinstance(addr, (bytes, bytearray)):
        if len(addr) != 20:
            raise ValueError("address must be 20 bytes")
        return to_checksum_address(bytes(addr))
    if not isinstance(addr, str) or not is_address(addr):
        raise ValueError(f"not an address: {addr!r}")
    return to_checksum_address(addr)


def is_zero_address(addr: Union[str, bytes, None]) -> bool:
    if addr is None:
        return True
    return normalize_address(addr) == to_checksum_address(ZERO_ADDRESS)
