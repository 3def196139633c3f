from __future__ import annotations

import pytest
from pytest import approx

from birbs.sim.core.clock import SimulationClock
from birbs.sim.core.config import FlockConfig, SimulationConfig
from birbs.sim.core.world import World


def _clock(max_ticks: int = 5) -> SimulationClock:
    config = SimulationConfig(seed=11, time_step=0.5, flock=FlockConfig(population_size=6))
    return SimulationClock(World(config), max_ticks_per_advance=max_ticks)


def test_advance_one_tick_counts_ticks():
    clock = _clock()
    first = clock.advance_one_tick()
    second = clock.advance_one_tick()
    assert (first.tick, second.tick) == (0, 1)
    assert clock.tick == 2
    assert clock.elapsed == approx(1.0)
    assert clock.world.metrics is second


def test_advance_runs_whole_ticks_and_carries_remainder():
    clock = _clock()
    ran = clock.advance(1.2)
    assert len(ran) == 2
    assert clock.pending_time == approx(0.2)

    ran = clock.advance(0.3)
    assert len(ran) == 1
    assert clock.tick == 3
    assert clock.pending_time == approx(0.0, abs=1e-9)

    assert clock.advance(0.1) == []
    assert clock.tick == 3


def test_advance_drops_backlog_beyond_cap():
    clock = _clock(max_ticks=3)
    ran = clock.advance(10.0)
    assert len(ran) == 3
    assert clock.pending_time == 0.0


def test_advance_rejects_negative_time():
    with pytest.raises(ValueError):
        _clock().advance(-0.1)


def test_frame_rate_does_not_change_results():
    coarse = _clock()
    fine = _clock()
    for _ in range(4):
        coarse.advance(1.0)
    for _ in range(16):
        fine.advance(0.25)
    assert coarse.tick == fine.tick == 8
    assert coarse.world.view() == fine.world.view()


def test_reset_rewinds_clock_and_world():
    clock = _clock()
    initial = clock.world.view()
    clock.advance(1.3)
    clock.reset()
    assert clock.tick == 0
    assert clock.pending_time == 0.0
    assert clock.world.view() == initial


@pytest.mark.parametrize("elapsed", [float("nan"), float("inf"), float("-inf")])
def test_advance_rejects_non_finite_time_and_keeps_running(elapsed):
    clock = _clock()
    with pytest.raises(ValueError):
        clock.advance(elapsed)
    assert clock.pending_time == 0.0

    ran = clock.advance(0.5)
    assert len(ran) == 1
    assert clock.tick == 1
