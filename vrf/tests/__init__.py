"""
vrf.tests helpers

- Deterministic test defaults (hash seed, Hypothesis profile).
- Shared fixtures live in the repository-root conftest.py.
"""

from __future__ import annotations

import os

from eth_account import Account
from eth_account.signers.local import LocalAccount
from hypothesis import settings

os.environ.setdefault("PYTHONHASHSEED", "0")

# Local: fewer examples for snappy feedback; no deadline (signing is slow on pure-Python backends)
settings.register_profile("local", settings(max_examples=60, deadline=None))
settings.register_profile("ci", settings(max_examples=200, deadline=None))
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE") or ("ci" if os.environ.get("CI") else "local"))


def account_for(index: int) -> LocalAccount:
    """Stable test account #index (keys 0x…01, 0x…02, …)."""
    return Account.from_key("0x" + f"{index:064x}")


__all__ = ["account_for"]
