"""Per-cell channel intensities (old/new) and per-direction flux accumulators. Flat, channel-major buffers."""

from __future__ import annotations

import numpy as np

from sim.constants import NUM_CHANNELS, NUM_DIRECTIONS


class ChannelState:
    """old/new are (3, total_cells) float64. Values are unbounded; only quantization clamps."""

    __slots__ = ("old", "new")

    def __init__(self, total_cells: int) -> None:
        self.old = np.zeros((NUM_CHANNELS, total_cells), dtype=np.float64)
        self.new = np.zeros((NUM_CHANNELS, total_cells), dtype=np.float64)

    @property
    def total_cells(self) -> int:
        return self.new.shape[1]

    def snapshot(self) -> None:
        """Copy new into old at the start of a step."""
        np.copyto(self.old, self.new)

    def fill(self, r: float, g: float, b: float) -> None:
        self.new[0].fill(r)
        self.new[1].fill(g)
        self.new[2].fill(b)
        self.snapshot()

    def load_bitmap(self, bitmap: np.ndarray) -> None:
        """Bitmap (height, width, 3|4); channel values cast to float, no scaling. Alpha ignored."""
        rgb = np.asarray(bitmap)[..., :NUM_CHANNELS]
        self.new[:] = rgb.reshape(-1, NUM_CHANNELS).T
        self.snapshot()

    def randomize(self, rng: np.random.Generator) -> None:
        """Every channel of every cell: independent uniform integer in [0, 256)."""
        self.new[:] = rng.integers(0, 256, size=self.new.shape)
        self.snapshot()

    def totals(self) -> np.ndarray:
        """Per-channel sum of new values, shape (3,)."""
        return self.new.sum(axis=1)

    @classmethod
    def from_bitmap(cls, bitmap: np.ndarray) -> ChannelState:
        h, w = np.asarray(bitmap).shape[:2]
        state = cls(h * w)
        state.load_bitmap(bitmap)
        return state

    @classmethod
    def random(cls, total_cells: int, rng: np.random.Generator) -> ChannelState:
        state = cls(total_cells)
        state.randomize(rng)
        return state


class FluxAccumulator:
    """values is (3, total_cells, 4) float64: signed intensity in flight from cell i toward neighbor d."""

    __slots__ = ("values",)

    def __init__(self, total_cells: int) -> None:
        self.values = np.zeros((NUM_CHANNELS, total_cells, NUM_DIRECTIONS), dtype=np.float64)

    def clear(self) -> None:
        self.values.fill(0.0)

    def mean_abs(self) -> float:
        return float(np.mean(np.abs(self.values))) if self.values.size else 0.0

    @classmethod
    def zeros(cls, total_cells: int) -> FluxAccumulator:
        return cls(total_cells)
