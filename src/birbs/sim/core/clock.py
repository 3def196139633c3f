from __future__ import annotations

import logging
import math
from typing import List

from .world import World
from ..types.metrics import TickMetrics

logger = logging.getLogger(__name__)

# Tolerance for accumulated frame times landing a hair under a tick boundary.
_EPSILON = 1e-9


class SimulationClock:
    """Fixed-rate driver for a :class:`World`.

    ``advance_one_tick`` runs exactly one tick. ``advance`` lets a render
    loop with its own frame rate feed elapsed wall time; whole ticks are
    run and the remainder is carried to the next call.
    """

    def __init__(self, world: World, max_ticks_per_advance: int = 5):
        self._world = world
        self._time_step = world.config.time_step
        self._max_ticks_per_advance = max(1, max_ticks_per_advance)
        self._tick = 0
        self._accumulator = 0.0

    @property
    def world(self) -> World:
        return self._world

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def time_step(self) -> float:
        return self._time_step

    @property
    def elapsed(self) -> float:
        return self._tick * self._time_step

    @property
    def pending_time(self) -> float:
        return self._accumulator

    def advance_one_tick(self) -> TickMetrics:
        metrics = self._world.step(self._tick)
        self._tick += 1
        return metrics

    def advance(self, elapsed_seconds: float) -> List[TickMetrics]:
        if not math.isfinite(elapsed_seconds) or elapsed_seconds < 0:
            raise ValueError(f"elapsed_seconds must be a finite value >= 0, got {elapsed_seconds}")
        self._accumulator += elapsed_seconds
        ran: List[TickMetrics] = []
        while self._accumulator + _EPSILON >= self._time_step:
            if len(ran) >= self._max_ticks_per_advance:
                logger.debug(
                    "dropping %.4fs of simulation time after %d ticks", self._accumulator, len(ran)
                )
                self._accumulator = 0.0
                break
            ran.append(self.advance_one_tick())
            self._accumulator = max(0.0, self._accumulator - self._time_step)
        return ran

    def reset(self) -> None:
        self._world.reset()
        self._tick = 0
        self._accumulator = 0.0
