"""Simulation: toroidal grid topology, channel/flux state, flux step, quantizer, tick scheduler."""

from sim.grid import Grid, InvalidGridError, build_neighbor_table
from sim.params import SimulationParameters
from sim.state import ChannelState, FluxAccumulator
from sim.flux import step
from sim.quantize import quantize, quantize_state
from sim.scheduler import TickScheduler
from sim.engine import Engine

__all__ = [
    "Grid",
    "InvalidGridError",
    "build_neighbor_table",
    "SimulationParameters",
    "ChannelState",
    "FluxAccumulator",
    "step",
    "quantize",
    "quantize_state",
    "TickScheduler",
    "Engine",
]
