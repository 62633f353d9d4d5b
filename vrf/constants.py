"""
Native VRF constants.

This module centralizes:
- Difficulty design constants (target solve latency, assumed solver throughput, floor)
- The minimum per-request reward
- Address / integer bounds
- The fixed gas schedule charged by the in-process ledger
- Revert reasons (part of the public surface; solvers and tests match on them)

Networks may override the tunable values via `vrf.config.OracleParams`, but
code that needs stable compile-time defaults imports from here.
"""

from __future__ import annotations

# -----------------------------
# Difficulty
# -----------------------------
# Initial difficulty = EXPECTED_FULFILL_TIME * ESTIMATED_HASH_POWER.
EXPECTED_FULFILL_TIME: int = 15     # blocks a request should wait on average
ESTIMATED_HASH_POWER: int = 100     # signatures/block a solver is assumed to try
MIN_DIFFICULTY: int = 1000          # floor; keeps the puzzle solvable after a lull

# -----------------------------
# Economics
# -----------------------------
MIN_REWARD: int = 10**14            # 0.0001 native coin, in wei

# -----------------------------
# Bounds
# -----------------------------
UINT256_MAX: int = (1 << 256) - 1
ADDRESS_LEN: int = 20
ZERO_ADDRESS: str = "0x" + "00" * ADDRESS_LEN
SIGNATURE_LEN: int = 65

# Genesis request id holding the seeded random value.
GENESIS_REQUEST_ID: int = 0
FIRST_REQUEST_ID: int = 1

# -----------------------------
# Gas schedule (flat, deterministic)
# -----------------------------
GAS_TX_BASE: int = 21_000
GAS_SLOAD: int = 800
GAS_SSTORE: int = 5_000
GAS_KECCAK: int = 60
GAS_ECRECOVER: int = 3_000
GAS_TRANSFER: int = 9_000
GAS_LOG: int = 750

DEFAULT_GAS_LIMIT: int = 500_000
DEFAULT_GAS_PRICE: int = 1_000_000_000  # 1 gwei; recorded, never charged

# -----------------------------
# Revert reasons
# -----------------------------
ERR_NOT_OWNER = "Only owner can call this function"
ERR_NOT_WHITELISTED = "Address not whitelisted"
ERR_ALREADY_WHITELISTED = "Address already whitelisted"
ERR_WHITELIST_ZERO = "Cannot whitelist zero address"
ERR_TRANSFER_ZERO = "Cannot transfer to zero address"
ERR_ZERO_COUNT = "At least one request"
ERR_REWARD_TOO_LOW = "Reward is too low"
ERR_NOT_INITIALIZED = "Random have not initialized"
ERR_ALREADY_FULFILLED = "Already fullfilled"
ERR_PREDECESSOR_UNFULFILLED = "Previous random have not fullfilled"
ERR_INVALID_SIGNATURE = "Invalid signature"
ERR_INVALID_INPUT = "Invalid random input"
ERR_EMPTY_BATCH = "Require at least one fulfillment"
ERR_LENGTH_MISMATCH = "Input length mismatch"
ERR_NOT_EOA = "Only EOA"

__all__ = [
    "EXPECTED_FULFILL_TIME",
    "ESTIMATED_HASH_POWER",
    "MIN_DIFFICULTY",
    "MIN_REWARD",
    "UINT256_MAX",
    "ADDRESS_LEN",
    "ZERO_ADDRESS",
    "SIGNATURE_LEN",
    "GENESIS_REQUEST_ID",
    "FIRST_REQUEST_ID",
    "GAS_TX_BASE",
    "GAS_SLOAD",
    "GAS_SSTORE",
    "GAS_KECCAK",
    "GAS_ECRECOVER",
    "GAS_TRANSFER",
    "GAS_LOG",
    "DEFAULT_GAS_LIMIT",
    "DEFAULT_GAS_PRICE",
    "ERR_NOT_OWNER",
    "ERR_NOT_WHITELISTED",
    "ERR_ALREADY_WHITELISTED",
    "ERR_WHITELIST_ZERO",
    "ERR_TRANSFER_ZERO",
    "ERR_ZERO_COUNT",
    "ERR_REWARD_TOO_LOW",
    "ERR_NOT_INITIALIZED",
    "ERR_ALREADY_FULFILLED",
    "ERR_PREDECESSOR_UNFULFILLED",
    "ERR_INVALID_SIGNATURE",
    "ERR_INVALID_INPUT",
    "ERR_EMPTY_BATCH",
    "ERR_LENGTH_MISMATCH",
    "ERR_NOT_EOA",
]
