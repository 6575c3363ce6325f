"""
Host-facing engine: owns the grid, channel state, flux and scheduler for one bitmap.
The host supplies the bitmap, a numpy Generator, and an optional present(frame) callback;
nothing here depends on a display API.
"""

import logging
from typing import Callable

import numpy as np

from sim.flux import step
from sim.grid import Grid, InvalidGridError
from sim.params import SimulationParameters
from sim.quantize import quantize_state
from sim.scheduler import TickScheduler
from sim.state import ChannelState, FluxAccumulator

logger = logging.getLogger(__name__)

INITIAL_STATES = ("bitmap", "random")


class Engine:
    """configure(bitmap) once, then tick() every host frame. Parameters may change between ticks."""

    def __init__(
        self,
        params: SimulationParameters | None = None,
        rng: np.random.Generator | None = None,
        present: Callable[[np.ndarray], None] | None = None,
    ) -> None:
        self.params = params if params is not None else SimulationParameters()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.present = present
        self.scheduler = TickScheduler()
        self.grid: Grid | None = None
        self.state: ChannelState | None = None
        self.flux: FluxAccumulator | None = None
        self.step_count = 0
        self._frame: np.ndarray | None = None

    @property
    def configured(self) -> bool:
        return self.grid is not None

    @property
    def shape(self) -> tuple[int, int] | None:
        return self.grid.shape if self.grid is not None else None

    def configure(self, bitmap: np.ndarray, initial_state: str = "bitmap") -> None:
        """Bind a (height, width, 3|4) bitmap. Rebuilds the topology only if dimensions changed."""
        bitmap = np.asarray(bitmap)
        if bitmap.ndim != 3 or bitmap.shape[2] not in (3, 4):
            raise ValueError(f"bitmap must be (height, width, 3|4), got shape {bitmap.shape}")
        if initial_state not in INITIAL_STATES:
            raise ValueError(f"initial_state must be one of {INITIAL_STATES}, got {initial_state!r}")
        height, width = bitmap.shape[:2]
        if width <= 0 or height <= 0:
            raise InvalidGridError(f"bitmap has zero width or height: {width}x{height}")
        self._allocate(width, height)
        if initial_state == "random":
            self.state.randomize(self.rng)
        else:
            self.state.load_bitmap(bitmap)
        logger.info("Configured %dx%d grid from %s", width, height, initial_state)

    def configure_blank(self, width: int, height: int) -> None:
        """Random state on a width x height grid with no source bitmap."""
        self._allocate(width, height)
        self.state.randomize(self.rng)
        logger.info("Configured %dx%d grid from random", width, height)

    def _allocate(self, width: int, height: int) -> None:
        if self.grid is None or self.grid.shape != (height, width):
            self.grid = Grid(width=width, height=height)
            self.state = ChannelState(self.grid.total_cells)
            self.flux = FluxAccumulator(self.grid.total_cells)
            self._frame = np.zeros((height, width, 3), dtype=np.uint8)
        else:
            self.flux.clear()
        self.scheduler.reset()
        self.step_count = 0

    def _require_grid(self) -> None:
        if self.grid is None:
            raise RuntimeError("Engine.configure must be called before stepping")

    def reset_random(self) -> None:
        """Uniform random 0..255 per channel per cell; flux cleared."""
        self._require_grid()
        self.state.randomize(self.rng)
        self.flux.clear()
        self.scheduler.reset()
        self.step_count = 0
        logger.debug("Random reset of %dx%d grid", self.grid.width, self.grid.height)

    def set_params(self, **params) -> None:
        self.params.update(**params)

    def get_params(self) -> dict:
        return self.params.to_dict()

    def step(self) -> None:
        self._require_grid()
        step(self.state, self.flux, self.grid.neighbors, self.params, self.rng)
        self.step_count += 1

    def step_n(self, n: int) -> None:
        for _ in range(n):
            self.step()

    def frame(self) -> np.ndarray:
        """Quantize the current state into the output buffer (in place) and return it."""
        self._require_grid()
        return quantize_state(self.state, self.grid.height, self.grid.width, out=self._frame)

    def tick(self) -> np.ndarray:
        """Run 0..N steps per the scheduler, then quantize and present exactly once."""
        self._require_grid()
        self.step_n(self.scheduler.steps_for_tick(self.params.steps_per_tick))
        frame = self.frame()
        if self.present is not None:
            self.present(frame)
        return frame

    def snapshot(self) -> dict:
        """Copies of state.new, flux and step count, for persistence."""
        self._require_grid()
        return {
            "values": self.state.new.copy(),
            "flux": self.flux.values.copy(),
            "step_count": self.step_count,
        }

    def load_snapshot(self, values: np.ndarray, flux: np.ndarray, step_count: int = 0) -> bool:
        """Restore a snapshot. Returns False (state untouched) when shapes do not match this grid."""
        self._require_grid()
        if values.shape != self.state.new.shape or flux.shape != self.flux.values.shape:
            return False
        self.state.new[:] = values
        self.state.snapshot()
        self.flux.values[:] = flux
        self.step_count = int(step_count)
        self.scheduler.reset()
        return True

    @property
    def stats(self) -> dict:
        if self.grid is None:
            return {"steps": 0}
        totals = self.state.totals()
        return {
            "steps": self.step_count,
            "total_r": float(totals[0]),
            "total_g": float(totals[1]),
            "total_b": float(totals[2]),
            "mean_r": float(totals[0]) / self.grid.total_cells,
            "mean_g": float(totals[1]) / self.grid.total_cells,
            "mean_b": float(totals[2]) / self.grid.total_cells,
            "mean_abs_flux": self.flux.mean_abs(),
        }
