"""
Per-step update: decay retained flux, add sign-driven cross-channel contributions and noise,
then move the flux from each cell to its neighbor.

Every flux value is subtracted from exactly one cell and added to exactly one neighbor, so the
per-channel total is conserved (the noise term moves intensity too, it never creates it).
Updates are additive, so cells and directions are processed all at once; the neighbor-side
additions are reduced with bincount since many cells write into the same target.
"""

import numpy as np

from sim.params import SimulationParameters
from sim.state import ChannelState, FluxAccumulator


def neighbor_signs(old: np.ndarray, neighbors: np.ndarray) -> np.ndarray:
    """sign(old[c][n] - old[c][i]) for every channel c, cell i, direction d. Shape (3, cells, 4)."""
    return np.sign(old[:, neighbors] - old[:, :, np.newaxis])


def update_flux(
    flux: np.ndarray,
    old: np.ndarray,
    neighbors: np.ndarray,
    params: SimulationParameters,
    rng: np.random.Generator | None = None,
) -> None:
    """In place: flux = inertia*flux + T*sum_src(coupling[src, dst]*sign[src]) + T*rf*U(-1, 1)."""
    flux *= params.flux_inertia
    t = params.temperature
    if t == 0.0:
        return
    coupling = params.coupling_matrix()
    if np.any(coupling):
        # Contract over src: (src, dst) x (src, cells, 4) -> (dst, cells, 4)
        flux += t * np.tensordot(coupling, neighbor_signs(old, neighbors), axes=([0], [0]))
    if params.random_factor != 0.0:
        if rng is None:
            rng = np.random.default_rng()
        flux += (t * params.random_factor) * rng.uniform(-1.0, 1.0, size=flux.shape)


def apply_flux(new: np.ndarray, flux: np.ndarray, neighbors: np.ndarray) -> None:
    """In place: new[c][i] -= flux[c, i, d]; new[c][neighbors[i, d]] += flux[c, i, d]."""
    cells = new.shape[1]
    targets = neighbors.ravel()
    new -= flux.sum(axis=2)
    for c in range(new.shape[0]):
        new[c] += np.bincount(targets, weights=flux[c].ravel(), minlength=cells)


def step(
    state: ChannelState,
    flux: FluxAccumulator,
    neighbors: np.ndarray,
    params: SimulationParameters,
    rng: np.random.Generator | None = None,
) -> ChannelState:
    """One simulation step. Snapshots new into old, mutates flux and state.new in place."""
    state.snapshot()
    update_flux(flux.values, state.old, neighbors, params, rng)
    apply_flux(state.new, flux.values, neighbors)
    return state
