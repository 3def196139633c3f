from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.clock import SimulationClock
from ..sim.core.config import SimulationConfig
from ..sim.core.errors import ConfigurationError
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)

_HEADER = [
    "tick",
    "population",
    "neighbor_checks",
    "neighbor_pairs",
    "separation_pairs",
    "wrapped",
    "avg_speed",
    "max_speed",
    "neighbors_per_agent",
    "tick_ms",
]


def _format_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    population = metrics.population
    neighbors_per_agent = 0.0 if population <= 0 else metrics.neighbor_pairs / population
    return [
        metrics.tick,
        population,
        metrics.neighbor_checks,
        metrics.neighbor_pairs,
        metrics.separation_pairs,
        metrics.wrapped,
        f"{metrics.average_speed:.4f}",
        f"{metrics.max_speed:.4f}",
        f"{neighbors_per_agent:.4f}",
        f"{tick_ms:.3f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def load_run_config(config_path: Optional[Path], seed: Optional[int], workers: Optional[int]) -> SimulationConfig:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    if workers is not None:
        config.workers = workers
    return config


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    config_path: Optional[Path] = None,
    summary_path: Optional[Path] = None,
    workers: Optional[int] = None,
) -> TickMetrics | None:
    config = load_run_config(config_path, seed, workers)
    last: TickMetrics | None = None

    tick_ms_series: list[float] = []
    speed_series: list[float] = []
    neighbor_series: list[float] = []
    wrapped_total = 0

    with World(config) as world:
        clock = SimulationClock(world)
        logger.info(
            "running %d ticks: population=%d seed=%d dt=%.5f",
            steps,
            config.flock.population_size,
            config.seed,
            config.time_step,
        )
        writer = None
        csv_file = None
        if log_path:
            csv_file = Path(log_path).open("w", newline="")
            writer = csv.writer(csv_file)
            writer.writerow(_HEADER)
        try:
            for _ in range(steps):
                last = clock.advance_one_tick()
                tick_ms = 0.0 if deterministic_log else last.tick_duration_ms
                tick_ms_series.append(tick_ms)
                speed_series.append(last.average_speed)
                neighbor_series.append(float(last.neighbor_pairs))
                wrapped_total += last.wrapped
                if writer:
                    writer.writerow(_format_row(last, tick_ms))
        finally:
            if csv_file:
                csv_file.close()

    if summary_path:
        summary = {
            "steps": steps,
            "seed": config.seed,
            "population": config.flock.population_size,
            "workers": config.workers,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "average_speed": _summary_stats(speed_series),
            "neighbor_pairs": _summary_stats(neighbor_series),
            "wrapped_total": wrapped_total,
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    if last is not None:
        logger.info("finished at tick %d: avg_speed=%.3f max_speed=%.3f", last.tick, last.average_speed, last.max_speed)
    return last


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless flocking simulation")
    parser.add_argument("--steps", type=int, default=600)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation settings")
    parser.add_argument("--workers", type=int, default=None, help="Threads used for the steering stage")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write per-tick metrics")
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        run_headless(
            args.steps,
            args.seed,
            args.log,
            deterministic_log=args.deterministic_log,
            config_path=args.config,
            summary_path=args.summary,
            workers=args.workers,
        )
    except ConfigurationError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    main()
