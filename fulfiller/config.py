from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from vrf.config import ChainConfig, OracleParams, load_config_file

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


class ExecutorKind(str, Enum):
    """Where parallel puzzle search runs."""

    thread = "thread"
    process = "process"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if v is not None and v != "" else default


def _env_int(name: str, default: int) -> int:
    v = _env(name)
    if v is None:
        return default
    try:
        return int(v, 10)
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    v = _env(name)
    if v is None:
        return default
    try:
        return float(v)
    except Exception:
        return default


@dataclass
class FulfillerConfig:
    """
    Runtime configuration for the off-ledger solver.

    Environment variables (all optional):

      NATIVE_VRF_FULFILLER_POLL_INTERVAL_S=float   (default: 5.0)
      NATIVE_VRF_FULFILLER_MAX_ATTEMPTS=int        (default: 1000000)
      NATIVE_VRF_FULFILLER_START_INPUT=int         (default: 0)
      NATIVE_VRF_FULFILLER_WORKERS=int             (default: 1; >1 enables parallel search)
      NATIVE_VRF_FULFILLER_EXECUTOR=thread|process (default: thread)
      NATIVE_VRF_FULFILLER_CHUNK_SIZE=int          (default: 256)
      NATIVE_VRF_FULFILLER_GAS_LIMIT=int           (default: 500000)
      NATIVE_VRF_FULFILLER_METRICS_PORT=int        (default: 0 = disabled)
      NATIVE_VRF_FULFILLER_PRIVATE_KEY=0x…         (first fulfiller's signing key; never logged)

    Notes
    - The search walks candidate inputs upward from `start_input`; `max_attempts`
      bounds one round, after which the round fails and is retried next tick.
    - With workers > 1 the candidate space is split into `chunk_size` slices;
      the result is still the lowest valid input.
    """

    poll_interval_s: float = 5.0
    max_attempts: int = 1_000_000
    start_input: int = 0
    workers: int = 1
    executor: ExecutorKind = ExecutorKind.thread
    chunk_size: int = 256
    gas_limit: int = 500_000
    metrics_port: int = 0
    private_key: Optional[str] = field(default=None, repr=False)

    oracle: OracleParams = field(default_factory=OracleParams)
    chain: ChainConfig = field(default_factory=ChainConfig)

    @classmethod
    def from_env(cls, prefix: str = "NATIVE_VRF_") -> "FulfillerConfig":
        p = prefix + "FULFILLER_"
        ex = (_env(p + "EXECUTOR", "thread") or "thread").lower()
        cfg = cls(
            poll_interval_s=_env_float(p + "POLL_INTERVAL_S", 5.0),
            max_attempts=_env_int(p + "MAX_ATTEMPTS", 1_000_000),
            start_input=_env_int(p + "START_INPUT", 0),
            workers=max(1, _env_int(p + "WORKERS", 1)),
            executor=ExecutorKind(ex) if ex in [e.value for e in ExecutorKind] else ExecutorKind.thread,
            chunk_size=_env_int(p + "CHUNK_SIZE", 256),
            gas_limit=_env_int(p + "GAS_LIMIT", 500_000),
            metrics_port=_env_int(p + "METRICS_PORT", 0),
            private_key=_env(p + "PRIVATE_KEY"),
            oracle=OracleParams.from_env(prefix),
            chain=ChainConfig.from_env(prefix),
        )
        cfg.validate()
        return cfg

    @classmethod
    def from_file(cls, path: str) -> "FulfillerConfig":
        """
        JSON/YAML with optional sections::

            fulfiller: {poll_interval_s: 1.0, workers: 4}
            oracle:    {min_difficulty: 1000}
            chain:     {block_time_s: 2}
        """
        data = load_config_file(path)
        f: Dict[str, Any] = dict(data.get("fulfiller", {}) or {})
        ex = str(f.pop("executor", "thread")).lower()
        cfg = cls(
            poll_interval_s=float(f.pop("poll_interval_s", 5.0)),
            max_attempts=int(f.pop("max_attempts", 1_000_000)),
            start_input=int(f.pop("start_input", 0)),
            workers=int(f.pop("workers", 1)),
            executor=ExecutorKind(ex),
            chunk_size=int(f.pop("chunk_size", 256)),
            gas_limit=int(f.pop("gas_limit", 500_000)),
            metrics_port=int(f.pop("metrics_port", 0)),
            private_key=f.pop("private_key", None),
            oracle=OracleParams.from_mapping(data.get("oracle", {}) or {}),
            chain=ChainConfig(**(data.get("chain", {}) or {})),
        )
        if f:
            raise ValueError(f"unknown fulfiller keys: {sorted(f)}")
        cfg.validate()
        return cfg

    def validate(self) -> None:
        if self.poll_interval_s < 0:
            raise ValueError("poll_interval_s must be >= 0")
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be > 0")
        if self.start_input < 0:
            raise ValueError("start_input must be >= 0")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")
        if self.chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        if self.gas_limit <= 0:
            raise ValueError("gas_limit must be > 0")
        if not (0 <= self.metrics_port <= 65535):
            raise ValueError("metrics_port must be in [0, 65535]")
        if self.private_key is not None and not _PRIVATE_KEY_RE.match(self.private_key):
            raise ValueError("private_key must be 32 hex-encoded bytes")
        self.oracle.validate()
        self.chain.validate()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["executor"] = self.executor.value
        d["private_key"] = "***" if self.private_key else None
        d["oracle"] = self.oracle.to_dict()
        return d


__all__ = ["FulfillerConfig", "ExecutorKind"]
