import pytest
from hypothesis import given
from hypothesis import strategies as st

import vrf.difficulty as diff
from vrf.config import OracleParams
from vrf.types.state import OracleState

OWNER = "0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf"


def _state(params: OracleParams, difficulty: int) -> OracleState:
    return OracleState(owner=OWNER, params=params, difficulty=difficulty)


def test_initial_difficulty_is_product_of_design_constants():
    assert diff.initial_difficulty(OracleParams()) == 1500
    assert diff.initial_difficulty(OracleParams(expected_fulfill_time=3, estimated_hash_power=7, min_difficulty=1)) == 21


def test_gap_larger_than_prev_resets_to_floor():
    p = diff.RetargetParams(min_difficulty=1000)
    assert diff.retarget(1500, 0, 5, p) == 1000
    assert diff.retarget(9000, 2, 3, p) == 1000


def test_fast_blocks_raise_difficulty():
    p = diff.RetargetParams(min_difficulty=1000)
    assert diff.retarget(1000, 3, 1, p) == 3000
    assert diff.retarget(1001, 3, 2, p) == 1501  # floor(1001*3/2)


def test_one_per_block_is_stable():
    p = diff.RetargetParams(min_difficulty=1000)
    assert diff.retarget(1234, 2, 2, p) == 1234
    assert diff.retarget(1234, 1, 1, p) == 1234


def test_never_below_floor_even_when_prev_equals_gap():
    p = diff.RetargetParams(min_difficulty=1000)
    assert diff.retarget(1000, 5, 5, p) == 1000


def test_invalid_inputs():
    p = diff.RetargetParams(min_difficulty=1)
    with pytest.raises(ValueError):
        diff.retarget(10, 1, 0, p)
    with pytest.raises(ValueError):
        diff.retarget(10, -1, 1, p)


def test_retarget_params_from_oracle_params():
    p = diff.RetargetParams.from_oracle_params(OracleParams(min_difficulty=77, expected_fulfill_time=10, estimated_hash_power=10))
    assert p.min_difficulty == 77


@given(
    d=st.integers(min_value=1, max_value=10**12),
    prev=st.integers(min_value=0, max_value=10_000),
    gap=st.integers(min_value=1, max_value=10_000),
    floor=st.integers(min_value=1, max_value=10**6),
)
def test_retarget_never_below_floor(d, prev, gap, floor):
    out = diff.retarget(d, prev, gap, diff.RetargetParams(min_difficulty=floor))
    assert out >= floor
    if gap > prev:
        assert out == floor
    else:
        assert out == max(floor, d * prev // gap)


@given(
    d=st.integers(min_value=1, max_value=10**9),
    prev=st.integers(min_value=1, max_value=1000),
    gap=st.integers(min_value=1, max_value=1000),
)
def test_retarget_is_monotone_in_throughput(d, prev, gap):
    p = diff.RetargetParams(min_difficulty=1)
    assert diff.retarget(d, prev + 1, gap, p) >= diff.retarget(d, prev, gap, p)


def test_record_fulfillments_sequence():
    params = OracleParams(expected_fulfill_time=2, estimated_hash_power=2, min_difficulty=2)
    st_ = _state(params, diff.initial_difficulty(params))
    assert st_.difficulty == 4

    # first ever fulfilment: gap from block 0 exceeds its zero count
    assert diff.record_fulfillments(st_, 10, 1) == 2
    assert st_.latest_fulfillment_block == 10
    assert st_.fulfillments_at(10) == 1

    # same block: no retarget, counter accumulates
    assert diff.record_fulfillments(st_, 10, 2) == 2
    assert st_.fulfillments_at(10) == 3

    # next block after 3 fulfilments in one block
    assert diff.record_fulfillments(st_, 11, 1) == 6
    assert st_.latest_fulfillment_block == 11

    # lull: 1 fulfilment, then a 2-block gap
    assert diff.record_fulfillments(st_, 13, 1) == 2
    assert st_.latest_fulfillment_block == 13
    assert st_.fulfillments_at(13) == 1


def test_record_fulfillments_rejects_negative_count():
    params = OracleParams()
    with pytest.raises(ValueError):
        diff.record_fulfillments(_state(params, 1500), 1, -1)
