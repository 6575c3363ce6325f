"""Quantizer: clamp then truncate."""

import numpy as np
import pytest

from sim.quantize import quantize, quantize_array, quantize_state
from sim.state import ChannelState


@pytest.mark.parametrize(
    "value,expected",
    [(-0.5, 0), (0.0, 0), (255.0, 255), (300.7, 255), (128.9, 128), (0.99, 0), (254.999, 254), (-1e9, 0)],
)
def test_quantize_boundaries(value, expected):
    assert quantize(value) == expected


def test_quantize_nan_is_zero():
    assert quantize(float("nan")) == 0


def test_quantize_array_matches_scalar():
    values = np.array([-0.5, 0.0, 255.0, 300.7, 128.9, np.inf, -np.inf, np.nan])
    out = quantize_array(values)
    assert out.dtype == np.uint8
    assert out.tolist() == [0, 0, 255, 255, 128, 255, 0, 0]


def test_quantize_state_layout_and_no_mutation():
    state = ChannelState(6)
    state.new[0] = [0, 1, 2, 3, 4, 5]
    state.new[1] = [300.0, -4.0, 10.5, 0, 0, 0]
    state.new[2] = 7.9
    before = state.new.copy()
    frame = quantize_state(state, 2, 3)
    assert frame.shape == (2, 3, 3)
    assert frame[0, 0].tolist() == [0, 255, 7]
    assert frame[0, 2].tolist() == [2, 10, 7]
    assert frame[1, 2, 0] == 5
    assert np.array_equal(state.new, before)


def test_quantize_state_writes_in_place():
    state = ChannelState(4)
    state.fill(12.3, 45.6, 78.9)
    out = np.zeros((2, 2, 3), dtype=np.uint8)
    result = quantize_state(state, 2, 2, out=out)
    assert result is out
    assert out[1, 1].tolist() == [12, 45, 78]
