"""Toroidal grid of width x height cells, addressed row-major, with a fixed 4-neighbor table."""

import numpy as np

from sim.constants import DEFAULT_WIDTH, DEFAULT_HEIGHT, NUM_DIRECTIONS


class InvalidGridError(ValueError):
    """Raised when a grid would have zero or negative width or height."""


def build_neighbor_table(width: int, height: int) -> np.ndarray:
    """
    Return (width*height, 4) int64 array of (left, right, top, bottom) neighbor indices.
    Cell i = row*width + col; edges wrap horizontally and vertically.
    """
    if width <= 0 or height <= 0:
        raise InvalidGridError(f"grid must have positive width and height, got {width}x{height}")
    total = width * height
    i = np.arange(total, dtype=np.int64)
    col = i % width
    table = np.empty((total, NUM_DIRECTIONS), dtype=np.int64)
    table[:, 0] = np.where(col != 0, i - 1, i + width - 1)
    table[:, 1] = np.where(col != width - 1, i + 1, i - width + 1)
    table[:, 2] = np.where(i >= width, i - width, i + total - width)
    table[:, 3] = np.where(i < total - width, i + width, i - total + width)
    return table


class Grid:
    """Immutable grid size plus its neighbor table. Rebuild when dimensions change."""

    __slots__ = ("width", "height", "total_cells", "neighbors")

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> None:
        neighbors = build_neighbor_table(width, height)
        neighbors.setflags(write=False)
        object.__setattr__(self, "width", int(width))
        object.__setattr__(self, "height", int(height))
        object.__setattr__(self, "total_cells", int(width) * int(height))
        object.__setattr__(self, "neighbors", neighbors)

    def __setattr__(self, name, value):
        raise AttributeError("Grid is immutable")

    @property
    def shape(self) -> tuple[int, int]:
        """(height, width), matching bitmap row/column order."""
        return (self.height, self.width)

    def index(self, row: int, col: int) -> int:
        return row * self.width + col

    def neighbor(self, i: int, direction: int) -> int:
        return int(self.neighbors[i, direction])

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return self.shape == other.shape

    def __hash__(self) -> int:
        return hash(self.shape)

    def __repr__(self) -> str:
        return f"Grid(width={self.width}, height={self.height})"
