import json

import pytest

from vrf import constants as C
from vrf.config import ChainConfig, OracleParams, load_config_file


def test_oracle_defaults():
    p = OracleParams()
    p.validate()
    assert p.initial_difficulty == 1500
    assert p.min_difficulty == C.MIN_DIFFICULTY == 1000
    assert p.min_reward == 10**14
    assert p.to_dict()["initial_difficulty"] == 1500


@pytest.mark.parametrize(
    "kwargs",
    [
        {"expected_fulfill_time": 0},
        {"estimated_hash_power": -1},
        {"min_difficulty": 0},
        {"min_reward": -1},
        {"min_difficulty": 2000},  # above 15 * 100
    ],
)
def test_oracle_validation(kwargs):
    with pytest.raises(ValueError):
        OracleParams(**kwargs).validate()


def test_oracle_from_env(monkeypatch):
    monkeypatch.setenv("NATIVE_VRF_EXPECTED_FULFILL_TIME", "2")
    monkeypatch.setenv("NATIVE_VRF_ESTIMATED_HASH_POWER", "3")
    monkeypatch.setenv("NATIVE_VRF_MIN_DIFFICULTY", "5")
    p = OracleParams.from_env()
    assert (p.initial_difficulty, p.min_difficulty, p.min_reward) == (6, 5, C.MIN_REWARD)

    monkeypatch.setenv("NATIVE_VRF_MIN_REWARD", "lots")
    with pytest.raises(ValueError, match="NATIVE_VRF_MIN_REWARD"):
        OracleParams.from_env()


def test_chain_from_env(monkeypatch):
    monkeypatch.setenv("X_CHAIN_ID", "7")
    monkeypatch.setenv("X_AUTOMINE", "no")
    cfg = ChainConfig.from_env("X_")
    assert cfg.chain_id == 7
    assert cfg.automine is False
    assert cfg.gas_limit == C.DEFAULT_GAS_LIMIT


def test_chain_validation():
    with pytest.raises(ValueError):
        ChainConfig(gas_limit=C.GAS_TX_BASE - 1).validate()
    with pytest.raises(ValueError):
        ChainConfig(block_time_s=0).validate()


def test_from_json_file_sections(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text(
        json.dumps(
            {
                "oracle": {"expected_fulfill_time": 4, "estimated_hash_power": 5, "min_difficulty": 3},
                "chain": {"block_time_s": 2, "automine": False},
            }
        )
    )
    p = OracleParams.from_file(str(path))
    assert (p.initial_difficulty, p.min_difficulty) == (20, 3)
    c = ChainConfig.from_file(str(path))
    assert (c.block_time_s, c.automine) == (2, False)


def test_from_flat_yaml_file(tmp_path):
    pytest.importorskip("yaml")
    path = tmp_path / "cfg.yaml"
    path.write_text("expected_fulfill_time: 3\nestimated_hash_power: 4\nmin_difficulty: 12\n")
    p = OracleParams.from_file(str(path))
    assert p.initial_difficulty == 12


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "cfg.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValueError, match="mapping"):
        load_config_file(str(path))
