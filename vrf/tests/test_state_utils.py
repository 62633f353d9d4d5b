import pytest
from eth_utils import keccak

from vrf import constants as C
from vrf.config import OracleParams
from vrf.tests import account_for
from vrf.types import OracleState
from vrf.utils import (hash_to_int, is_zero_address, normalize_address,
                       solidity_keccak)

OWNER = account_for(1).address


def _state() -> OracleState:
    st = OracleState(owner=OWNER, params=OracleParams(), difficulty=1500)
    st.random_results[0] = 1
    return st


def test_pending_range_and_summary():
    st = _state()
    assert list(st.pending_ids()) == []
    st.requesters.update({1: OWNER, 2: OWNER})
    st.next_request_id = 3
    assert list(st.pending_ids()) == [1, 2]
    st.random_results[1] = 5
    st.latest_fulfill_id = 1
    assert list(st.pending_ids()) == [2]
    st.check_invariants()
    assert st.summary()["latest_fulfill_id"] == 1
    assert st.summary()["pending"] == 1


def test_invariant_violations_are_reported():
    st = _state()
    st.random_results[2] = 9  # beyond latest_fulfill_id
    with pytest.raises(AssertionError):
        st.check_invariants()

    st = _state()
    st.difficulty = 999
    with pytest.raises(AssertionError, match="floor"):
        st.check_invariants()


def test_absent_entries_use_legacy_defaults():
    st = _state()
    assert st.random_result(7) == 0
    assert st.request_initializer(7) == C.ZERO_ADDRESS
    assert st.request(7).requester is None
    assert st.nonce_of(OWNER) == 0


def test_hash_helpers():
    assert solidity_keccak(["uint256"], [1]) == keccak((1).to_bytes(32, "big"))
    assert solidity_keccak(["address"], [OWNER]) == keccak(bytes.fromhex(OWNER[2:]))
    with pytest.raises(ValueError):
        solidity_keccak(["uint256"], [1, 2])
    assert hash_to_int(b"\x01\x00") == 256


def test_address_helpers():
    assert normalize_address(OWNER.lower()) == OWNER
    assert normalize_address(bytes.fromhex(OWNER[2:])) == OWNER
    assert is_zero_address(C.ZERO_ADDRESS)
    assert is_zero_address(None)
    assert not is_zero_address(OWNER)
    with pytest.raises(ValueError):
        normalize_address("0x1234")
