"""
Native VRF oracle package.

A permissionless randomness oracle: whitelisted requesters escrow a reward
for a random value, and anyone holding a secp256k1 key may fulfil the request
by finding a signature over the request's puzzle message whose leading 256
bits are divisible by the current difficulty.

Subpackages / modules:
  • constants   — protocol constants and revert reasons
  • config      — OracleParams / ChainConfig (env, JSON, YAML)
  • errors      — VrfError taxonomy and require()
  • metrics     — Prometheus instruments
  • utils       — keccak / packed encoding and signature helpers
  • types       — Request record and the single owned OracleState
  • ledger      — deterministic in-process ledger (blocks, gas, events, treasury)
  • access      — owner + whitelist
  • registry    — request creation and escrow
  • difficulty  — throughput-driven difficulty controller
  • puzzle      — puzzle message + submission verification
  • entropy     — three-stage random derivation and salt rotation
  • settlement  — all-or-nothing fulfilment batches
  • oracle      — the NativeVRF contract facade tying the above together

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

try:
    from .version import __version__  # type: ignore
except Exception:  # pragma: no cover
    __version__ = "0.0.0+dev"

__all__ = ["__version__"]
