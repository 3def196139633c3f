from __future__ import annotations

from typing import Iterable

from ..core.agent import Agent
from ..types.metrics import TickMetrics


def speed_stats(agents: Iterable[Agent]) -> tuple[int, float, float]:
    population = 0
    speed_sum = 0.0
    max_speed = 0.0
    for agent in agents:
        speed = agent.velocity.length()
        population += 1
        speed_sum += speed
        if speed > max_speed:
            max_speed = speed
    average = speed_sum / population if population else 0.0
    return population, average, max_speed


def create_metrics(
    tick: int,
    neighbor_checks: int,
    neighbor_pairs: int,
    separation_pairs: int,
    wrapped: int,
    duration_ms: float,
    stats: tuple[int, float, float],
) -> TickMetrics:
    population, average_speed, max_speed = stats
    return TickMetrics(
        tick=tick,
        population=population,
        neighbor_checks=neighbor_checks,
        neighbor_pairs=neighbor_pairs,
        separation_pairs=separation_pairs,
        wrapped=wrapped,
        average_speed=average_speed,
        max_speed=max_speed,
        tick_duration_ms=duration_ms,
    )
