"""Float channel values to displayable 8-bit: clamp to [0, 255], then truncate toward zero."""

import math

import numpy as np

from sim.constants import CHANNEL_MAX, NUM_CHANNELS
from sim.state import ChannelState


def quantize(value: float) -> int:
    """0 below 0, 255 above 255, else int(value) (truncation, not rounding). NaN -> 0."""
    if math.isnan(value) or value < 0.0:
        return 0
    if value > CHANNEL_MAX:
        return 255
    return int(value)


def quantize_array(values: np.ndarray, out: np.ndarray | None = None) -> np.ndarray:
    """Vectorized quantize; same shape, uint8."""
    clipped = np.clip(np.nan_to_num(values, nan=0.0), 0.0, CHANNEL_MAX)
    if out is None:
        return np.trunc(clipped).astype(np.uint8)
    np.trunc(clipped, out=clipped)
    out[...] = clipped
    return out


def quantize_state(
    state: ChannelState, height: int, width: int, out: np.ndarray | None = None
) -> np.ndarray:
    """(height, width, 3) uint8 frame from state.new. Writes into out when given. State is not touched."""
    if out is None:
        out = np.empty((height, width, NUM_CHANNELS), dtype=np.uint8)
    quantize_array(state.new.T.reshape(height, width, NUM_CHANNELS), out=out)
    return out
