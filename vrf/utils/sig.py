"""
Puzzle signatures.

A solver signs the 32-byte puzzle message with EIP-191 ``personal_sign``
(``"\\x19Ethereum Signed Message:\\n32" ‖ message``) using a secp256k1 key.
The signature's *numeric value* is the big-endian integer of its first 32
bytes (the ``r`` component); the puzzle is solved when that value is a
multiple of the current difficulty.
"""

from __future__ import annotations

from typing import Optional, Union

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError

from ..constants import SIGNATURE_LEN
from .hash import normalize_address

__all__ = ["sign_message_hash", "recover_signer", "signature_value", "meets_difficulty"]


def sign_message_hash(message_hash: bytes, private_key: Union[str, bytes]) -> bytes:
    """EIP-191 sign a 32-byte message hash; returns the 65-byte signature."""
    signed = Account.sign_message(encode_defunct(primitive=bytes(message_hash)), private_key=private_key)
    return bytes(signed.signature)


def recover_signer(message_hash: bytes, signature: bytes) -> Optional[str]:
    """
    Recover the checksum address that produced `signature` over `message_hash`.

    Returns None for malformed signatures (wrong length, bad v, s out of range).
    """
    if not isinstance(signature, (bytes, bytearray)) or len(signature) != SIGNATURE_LEN:
        return None
    try:
        addr = Account.recover_message(
            encode_defunct(primitive=bytes(message_hash)), signature=bytes(signature)
        )
    except (BadSignature, KeyValidationError, ValueError):
        return None
    return normalize_address(addr)


def signature_value(signature: bytes) -> int:
    """Big-endian integer of the first 32 bytes of the signature."""
    if len(signature) < 32:
        raise ValueError("signature shorter than 32 bytes")
    return int.from_bytes(bytes(signature[:32]), "big")


def meets_difficulty(value: int, difficulty: int) -> bool:
    return difficulty > 0 and value % difficulty == 0
