# -*- coding: utf-8 -*-
"""
Shared pytest fixtures for the vrf and fulfiller test suites.

Goals:
- A deterministic in-process ledger (LocalChain) per test.
- Funded accounts with stable keys: owner, alice (requester), bob and carol
  (solvers), mallory (not whitelisted).
- A deployed oracle with *easy* difficulty parameters so puzzles solve in a
  handful of signatures.
- A `solve` helper that brute-forces a valid (input, signature) pair for a
  request against the current pending block.

Usage (inside a test file):
    def test_flow(chain, accounts, oracle, solve):
        alice, bob = accounts["alice"], accounts["bob"]
        chain.transact(oracle, "request_random", 1, sender=alice.address, value=10**14)
        inp, sig = solve(bob, 1)
        chain.transact(oracle, "fulfill_randomness", [1], [inp], [sig], sender=bob.address)
"""
from __future__ import annotations

import os
from typing import Callable, Dict, Optional, Tuple

import pytest
from eth_account.signers.local import LocalAccount

from vrf.config import ChainConfig, OracleParams
from vrf.ledger import LocalChain
from vrf.oracle import NativeVRF
from vrf.puzzle import message_hash
from vrf.tests import account_for
from vrf.utils.sig import meets_difficulty, sign_message_hash, signature_value

os.environ.setdefault("PYTHONHASHSEED", "0")

FUNDING = 10**21
SEED = 12345

# initial difficulty 4, floor 2
EASY_PARAMS = OracleParams(expected_fulfill_time=2, estimated_hash_power=2, min_difficulty=2)

_LABELS = ("owner", "alice", "bob", "carol", "mallory")


@pytest.fixture
def accounts() -> Dict[str, LocalAccount]:
    return {label: account_for(i + 1) for i, label in enumerate(_LABELS)}


@pytest.fixture
def chain_config() -> ChainConfig:
    return ChainConfig()


@pytest.fixture
def chain(chain_config, accounts) -> LocalChain:
    c = LocalChain(chain_config)
    for acct in accounts.values():
        c.fund(acct.address, FUNDING)
    return c


@pytest.fixture
def oracle_params() -> OracleParams:
    return EASY_PARAMS


@pytest.fixture
def oracle(chain, accounts, oracle_params) -> str:
    """Deployed oracle address; alice is whitelisted."""
    owner = accounts["owner"].address
    addr = chain.deploy(NativeVRF, SEED, oracle_params, sender=owner)
    chain.transact(addr, "whitelist_address", accounts["alice"].address, sender=owner)
    return addr


@pytest.fixture
def make_requests(chain, accounts, oracle, oracle_params) -> Callable[[int], list]:
    """make_requests(n): alice requests n randoms paying the minimum reward each."""

    def _request(n: int) -> list:
        rcpt = chain.transact(
            oracle,
            "request_random",
            n,
            sender=accounts["alice"].address,
            value=oracle_params.min_reward * n,
        )
        return rcpt.return_value

    return _request


@pytest.fixture
def solve(chain, oracle) -> Callable[..., Tuple[int, bytes]]:
    """
    solve(account, request_id, *, nonce=None, prev_random=None, height=None,
          difficulty=None, start=0) -> (input, signature)

    Defaults read the oracle's current state and the pending block height.
    """

    def _solve(
        account: LocalAccount,
        request_id: int,
        *,
        nonce: Optional[int] = None,
        prev_random: Optional[int] = None,
        height: Optional[int] = None,
        difficulty: Optional[int] = None,
        start: int = 0,
        max_attempts: int = 50_000,
    ) -> Tuple[int, bytes]:
        sender = account.address
        if prev_random is None:
            prev_random = chain.call(oracle, "random_results", request_id - 1)
        if nonce is None:
            nonce = chain.call(oracle, "get_nonce", sender)
        if height is None:
            height = chain.pending.height
        if difficulty is None:
            difficulty = chain.call(oracle, "difficulty")
        for candidate in range(start, start + max_attempts):
            msg = message_hash(prev_random, candidate, request_id, sender, nonce, height)
            sig = sign_message_hash(msg, account.key)
            if meets_difficulty(signature_value(sig), difficulty):
                return candidate, sig
        raise AssertionError(f"no solution for request {request_id} within {max_attempts} attempts")

    return _solve
