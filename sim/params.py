"""Tunable simulation coefficients. Passed explicitly into every step; safe to replace between steps."""

from __future__ import annotations

from dataclasses import dataclass, field, fields

import numpy as np

from sim.constants import (
    CHANNELS,
    DEFAULT_FLUX_INERTIA,
    DEFAULT_RANDOM_FACTOR,
    DEFAULT_STEPS_PER_TICK,
    DEFAULT_TEMPERATURE,
    NUM_CHANNELS,
)


def _zero_coupling() -> list[list[float]]:
    return [[0.0] * NUM_CHANNELS for _ in range(NUM_CHANNELS)]


def _coupling_list(value) -> list[list[float]]:
    m = np.asarray(value, dtype=np.float64)
    if m.shape != (NUM_CHANNELS, NUM_CHANNELS):
        raise ValueError(f"channel_to_channel must be 3x3, got shape {m.shape}")
    return m.tolist()


@dataclass
class SimulationParameters:
    """
    flux_inertia: fraction of last step's flux kept before new contributions.
    temperature: global gain on coupling and noise terms.
    random_factor: gain on the uniform(-1, 1) noise term.
    channel_to_channel[src][dst]: how a difference in channel src drives flux in channel dst.
    steps_per_tick: simulation steps per host frame; below 1 means one step every N frames.
    """

    flux_inertia: float = DEFAULT_FLUX_INERTIA
    temperature: float = DEFAULT_TEMPERATURE
    random_factor: float = DEFAULT_RANDOM_FACTOR
    channel_to_channel: list[list[float]] = field(default_factory=_zero_coupling)
    steps_per_tick: float = DEFAULT_STEPS_PER_TICK

    def __post_init__(self) -> None:
        self.channel_to_channel = _coupling_list(self.channel_to_channel)

    def coupling_matrix(self) -> np.ndarray:
        """(3, 3) float64 array indexed [src, dst]."""
        return np.asarray(self.channel_to_channel, dtype=np.float64)

    def coupling(self, src: str, dst: str) -> float:
        return self.channel_to_channel[CHANNELS.index(src)][CHANNELS.index(dst)]

    def set_coupling(self, src: str, dst: str, value: float) -> None:
        self.channel_to_channel[CHANNELS.index(src)][CHANNELS.index(dst)] = float(value)

    def update(self, **kwargs) -> None:
        """Set any known field by name; unknown keys are ignored. Nothing changes if any value is rejected."""
        names = {f.name for f in fields(self)}
        staged = {}
        for key, value in kwargs.items():
            if key not in names or value is None:
                continue
            staged[key] = _coupling_list(value) if key == "channel_to_channel" else float(value)
        for key, value in staged.items():
            setattr(self, key, value)

    def to_dict(self) -> dict:
        return {
            "flux_inertia": self.flux_inertia,
            "temperature": self.temperature,
            "random_factor": self.random_factor,
            "channel_to_channel": [list(row) for row in self.channel_to_channel],
            "steps_per_tick": self.steps_per_tick,
        }

    @classmethod
    def from_dict(cls, data: dict) -> SimulationParameters:
        p = cls()
        p.update(**{k: data[k] for k in data})
        return p
