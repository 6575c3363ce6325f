"""Tick scheduler: rate to step count."""

import sys

import pytest

from sim.scheduler import TickScheduler


def _run(rate, ticks):
    s = TickScheduler()
    return [s.steps_for_tick(rate) for _ in range(ticks)]


def test_quarter_rate_runs_every_fourth_tick():
    counts = _run(0.25, 16)
    assert sum(counts) == 4
    assert counts[:8] == [1, 0, 0, 0, 1, 0, 0, 0]


def test_whole_rates():
    assert _run(2.0, 5) == [2] * 5
    assert _run(1.0, 3) == [1] * 3
    assert _run(3.9, 2) == [3, 3]


@pytest.mark.parametrize("rate,interval", [(0.5, 2), (0.1, 10), (1 / 3, 3), (0.3, 4)])
def test_fractional_interval(rate, interval):
    counts = _run(rate, interval * 5)
    assert sum(counts) == 5
    assert all(c in (0, 1) for c in counts)
    ones = [i for i, c in enumerate(counts) if c]
    assert all(b - a == interval for a, b in zip(ones, ones[1:]))


def test_zero_rate_never_steps():
    assert _run(0.0, 4) == [0, 0, 0, 0]


def test_rate_raised_live_shortens_wait():
    s = TickScheduler()
    assert s.steps_for_tick(0.1) == 1
    assert s.steps_for_tick(0.1) == 0
    # counter was 9; at 0.5 it is clamped to 2, so the next step comes within two ticks
    assert [s.steps_for_tick(0.5) for _ in range(2)] == [0, 1]


def test_reset():
    s = TickScheduler()
    s.steps_for_tick(0.25)
    s.reset()
    assert s.steps_for_tick(0.25) == 1


@pytest.mark.parametrize("rate", [float("inf"), float("-inf"), float("nan"), -0.5])
def test_non_finite_or_negative_rate_never_steps(rate):
    assert _run(rate, 3) == [0, 0, 0]


def test_tiny_rate_steps_once_then_waits():
    s = TickScheduler()
    assert s.max_skip(1e-310) == sys.maxsize
    assert [s.steps_for_tick(1e-310) for _ in range(4)] == [1, 0, 0, 0]
    # a sane rate afterwards clamps the huge counter
    assert s.steps_for_tick(0.5) == 0
    assert s.steps_for_tick(0.5) == 1
