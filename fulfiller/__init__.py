"""
Off-ledger fulfiller for the Native VRF oracle.

Modules:
  • client   — OracleClient protocol + LocalOracleClient (LocalChain binding)
  • search   — PuzzleSnapshot, sequential and parallel puzzle search
  • validate — pre-submission checks mirroring the oracle's verification
  • agent    — polling state machine (Fulfiller)
  • metrics  — Prometheus instruments
  • config   — FulfillerConfig (env / JSON / YAML)
  • cli      — `native-vrf` typer app
"""

from __future__ import annotations

from vrf.version import __version__

__all__ = ["__version__"]
