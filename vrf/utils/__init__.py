"""Hashing and signature helpers."""

from .hash import (hash_to_int, is_zero_address, normalize_address,
                   solidity_keccak)
from .sig import (meets_difficulty, recover_signer, sign_message_hash,
                  signature_value)

__all__ = [
    "solidity_keccak",
    "hash_to_int",
    "normalize_address",
    "is_zero_address",
    "sign_message_hash",
    "recover_signer",
    "signature_value",
    "meets_difficulty",
]
