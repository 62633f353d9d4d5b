"""
Native VRF configuration.

Typed configuration objects for:
- OracleParams: difficulty design constants and the minimum reward an oracle
  instance is deployed with (immutable for the life of the deployment)
- ChainConfig:  the in-process ledger (chain id, block cadence, gas limits)

Both provide:
- Dataclass-based configs with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML* file (*if PyYAML is available)
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict

from . import constants as C


# -------------------------
# Oracle parameters
# -------------------------


@dataclass(frozen=True)
class OracleParams:
    """
    expected_fulfill_time: blocks a request should wait on average
    estimated_hash_power:  signatures/block a typical solver tries
    min_difficulty:        floor the controller never goes below
    min_reward:            minimum reward per request, in wei

    The initial difficulty is expected_fulfill_time * estimated_hash_power.
    Devnets and tests may lower the floor to keep puzzles cheap.
    """

    expected_fulfill_time: int = C.EXPECTED_FULFILL_TIME
    estimated_hash_power: int = C.ESTIMATED_HASH_POWER
    min_difficulty: int = C.MIN_DIFFICULTY
    min_reward: int = C.MIN_REWARD

    @property
    def initial_difficulty(self) -> int:
        return self.expected_fulfill_time * self.estimated_hash_power

    def validate(self) -> None:
        for name in ("expected_fulfill_time", "estimated_hash_power", "min_difficulty"):
            v = getattr(self, name)
            if not isinstance(v, int) or v <= 0:
                raise ValueError(f"{name} must be a positive int")
        if not isinstance(self.min_reward, int) or self.min_reward < 0:
            raise ValueError("min_reward must be an int >= 0")
        if self.initial_difficulty < self.min_difficulty:
            raise ValueError(
                f"initial difficulty {self.initial_difficulty} is below "
                f"min_difficulty {self.min_difficulty}"
            )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["initial_difficulty"] = self.initial_difficulty
        return data

    @staticmethod
    def from_env(prefix: str = "NATIVE_VRF_") -> "OracleParams":
        """
        Supported keys:
          - NATIVE_VRF_EXPECTED_FULFILL_TIME=15
          - NATIVE_VRF_ESTIMATED_HASH_POWER=100
          - NATIVE_VRF_MIN_DIFFICULTY=1000
          - NATIVE_VRF_MIN_REWARD=100000000000000
        """
        get = _env_getter(prefix)
        params = OracleParams(
            expected_fulfill_time=get("EXPECTED_FULFILL_TIME", int, C.EXPECTED_FULFILL_TIME),
            estimated_hash_power=get("ESTIMATED_HASH_POWER", int, C.ESTIMATED_HASH_POWER),
            min_difficulty=get("MIN_DIFFICULTY", int, C.MIN_DIFFICULTY),
            min_reward=get("MIN_REWARD", int, C.MIN_REWARD),
        )
        params.validate()
        return params

    @staticmethod
    def from_mapping(data: Dict[str, Any]) -> "OracleParams":
        params = OracleParams(
            expected_fulfill_time=int(data.get("expected_fulfill_time", C.EXPECTED_FULFILL_TIME)),
            estimated_hash_power=int(data.get("estimated_hash_power", C.ESTIMATED_HASH_POWER)),
            min_difficulty=int(data.get("min_difficulty", C.MIN_DIFFICULTY)),
            min_reward=int(data.get("min_reward", C.MIN_REWARD)),
        )
        params.validate()
        return params

    @staticmethod
    def from_file(path: str) -> "OracleParams":
        """
        Load from JSON or YAML. Keys may sit at the top level or under an
        ``oracle:`` section:

            oracle:
              expected_fulfill_time: 15
              estimated_hash_power: 100
              min_difficulty: 1000
        """
        data = load_config_file(path)
        return OracleParams.from_mapping(data.get("oracle", data))


# -------------------------
# Ledger / chain
# -------------------------


@dataclass
class ChainConfig:
    """
    chain_id:      ledger chain id (bound into tx hashes)
    block_time_s:  timestamp increment per sealed block
    genesis_time:  timestamp of block 0
    gas_limit:     default per-transaction gas limit
    gas_price:     recorded per transaction and fed to entropy; never charged
    automine:      seal a block after every transaction
    """

    chain_id: int = 1337
    block_time_s: int = 12
    genesis_time: int = 1_700_000_000
    gas_limit: int = C.DEFAULT_GAS_LIMIT
    gas_price: int = C.DEFAULT_GAS_PRICE
    automine: bool = True

    def validate(self) -> None:
        if self.chain_id <= 0:
            raise ValueError("chain_id must be > 0")
        if self.block_time_s <= 0:
            raise ValueError("block_time_s must be > 0")
        if self.genesis_time < 0:
            raise ValueError("genesis_time must be >= 0")
        if self.gas_limit < C.GAS_TX_BASE:
            raise ValueError(f"gas_limit must be >= {C.GAS_TX_BASE}")
        if self.gas_price < 0:
            raise ValueError("gas_price must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_env(prefix: str = "NATIVE_VRF_") -> "ChainConfig":
        """
        Supported keys:
          - NATIVE_VRF_CHAIN_ID=1337
          - NATIVE_VRF_BLOCK_TIME_S=12
          - NATIVE_VRF_GENESIS_TIME=1700000000
          - NATIVE_VRF_GAS_LIMIT=500000
          - NATIVE_VRF_GAS_PRICE=1000000000
          - NATIVE_VRF_AUTOMINE=true
        """
        get = _env_getter(prefix)
        cfg = ChainConfig(
            chain_id=get("CHAIN_ID", int, 1337),
            block_time_s=get("BLOCK_TIME_S", int, 12),
            genesis_time=get("GENESIS_TIME", int, 1_700_000_000),
            gas_limit=get("GAS_LIMIT", int, C.DEFAULT_GAS_LIMIT),
            gas_price=get("GAS_PRICE", int, C.DEFAULT_GAS_PRICE),
            automine=get("AUTOMINE", bool, True),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "ChainConfig":
        data = load_config_file(path)
        d = data.get("chain", data)
        cfg = ChainConfig(
            chain_id=int(d.get("chain_id", 1337)),
            block_time_s=int(d.get("block_time_s", 12)),
            genesis_time=int(d.get("genesis_time", 1_700_000_000)),
            gas_limit=int(d.get("gas_limit", C.DEFAULT_GAS_LIMIT)),
            gas_price=int(d.get("gas_price", C.DEFAULT_GAS_PRICE)),
            automine=bool(d.get("automine", True)),
        )
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _env_getter(prefix: str) -> Callable[[str, Any, Any], Any]:
    def _get(name: str, cast: Any, default: Any) -> Any:
        key = prefix + name
        raw = os.getenv(key)
        if raw is None or raw == "":
            return default
        try:
            if cast is bool:
                return raw.strip().lower() in {"1", "true", "yes", "on"}
            return cast(raw)
        except Exception as e:
            raise ValueError(f"Invalid value for {key}: {raw!r}") from e

    return _get


def load_config_file(path: str) -> Dict[str, Any]:
    """Read a JSON or YAML config file into a dict."""
    return _parse_json_or_yaml(_read_text(path), path)


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            import yaml  # type: ignore

            data = yaml.safe_load(text) or {}
        except Exception as e:
            raise ValueError(
                f"Failed to parse {path_hint!r} as JSON or YAML. "
                f"Install PyYAML or provide valid JSON. Original error: {e}"
            ) from e
    if not isinstance(data, dict):
        raise ValueError(f"{path_hint!r}: top-level config must be a mapping")
    return data


DEFAULT_PARAMS = OracleParams()
DEFAULT_CHAIN = ChainConfig()

__all__ = [
    "OracleParams",
    "ChainConfig",
    "DEFAULT_PARAMS",
    "DEFAULT_CHAIN",
    "load_config_file",
]
