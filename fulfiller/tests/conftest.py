"""
fulfiller.tests.conftest

Builds on the repository-root fixtures (chain, accounts, oracle, …):

- client_for(account) -> LocalOracleClient bound to the deployed oracle
- fast_config        -> FulfillerConfig with no polling delay
- isolated_metrics   -> fulfiller Metrics on a private registry
"""

from __future__ import annotations

import pytest
from prometheus_client import CollectorRegistry

from fulfiller.client import LocalOracleClient
from fulfiller.config import FulfillerConfig
from fulfiller.metrics import Metrics


def hex_key(account) -> str:
    return "0x" + bytes(account.key).hex()


@pytest.fixture
def client_for(chain, oracle):
    def _make(account, cls=LocalOracleClient, **kw):
        return cls(chain, oracle, hex_key(account), **kw)

    return _make


@pytest.fixture
def fast_config() -> FulfillerConfig:
    return FulfillerConfig(poll_interval_s=0.0, max_attempts=20_000)


@pytest.fixture
def isolated_metrics() -> Metrics:
    return Metrics(registry=CollectorRegistry())
