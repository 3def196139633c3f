from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from time import perf_counter
from typing import Any, Dict, List, Sequence, Tuple

from pygame.math import Vector2

from .agent import Agent, AgentView
from .config import SimulationConfig, validate_bounds
from .errors import ConfigurationError
from .rng import DeterministicRng
from .store import AgentStore
from ..systems import metrics as metrics_system, movement
from ..systems.steering import compute_steering
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import heading_from_velocity

logger = logging.getLogger(__name__)


def _chunk_bounds(count: int, chunks: int) -> List[Tuple[int, int]]:
    size, extra = divmod(count, chunks)
    bounds = []
    start = 0
    for index in range(chunks):
        stop = start + size + (1 if index < extra else 0)
        if stop > start:
            bounds.append((start, stop))
        start = stop
    return bounds


def _validate_initial_agents(agents: Sequence[AgentView] | None) -> Tuple[AgentView, ...] | None:
    if agents is None:
        return None
    seen = set()
    for view in agents:
        if view.id in seen:
            raise ConfigurationError("initial_agents", f"duplicate agent id {view.id}")
        if not all(math.isfinite(value) for value in (view.x, view.y, view.vx, view.vy)):
            raise ConfigurationError("initial_agents", f"agent {view.id} has a non-finite position or velocity")
        seen.add(view.id)
    return tuple(agents)


class World:
    """Flock state plus the fixed-tick pipeline that advances it.

    A tick copies every agent into an immutable snapshot, applies the
    steering rules to each agent from that snapshot only, integrates
    positions and finally wraps agents that left the visible rectangle.
    Nothing observes the store between those stages.
    """

    def __init__(
        self,
        config: SimulationConfig,
        rng: DeterministicRng | None = None,
        initial_agents: Sequence[AgentView] | None = None,
    ):
        """Build the starting flock.

        By default `population_size` agents are drawn from `rng` (or a
        generator seeded with `config.seed`). Passing `initial_agents`
        places exactly those agents instead; `reset` restores them.
        """
        config.validate()
        self._config = config
        self._initial_agents = _validate_initial_agents(initial_agents)
        self._rng = rng if rng is not None else DeterministicRng(config.seed)
        self._store = AgentStore()
        self._half_width = float(config.bounds.half_width)
        self._half_height = float(config.bounds.half_height)
        self._executor: ThreadPoolExecutor | None = None
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()
        logger.debug(
            "world created: population=%d bounds=(%.1f, %.1f) workers=%d seed=%s",
            len(self._store),
            self._half_width,
            self._half_height,
            config.workers,
            self._rng.seed,
        )

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def population(self) -> int:
        return len(self._store)

    @property
    def bounds(self) -> Tuple[float, float]:
        return self._half_width, self._half_height

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    def set_bounds(self, half_width: float, half_height: float) -> None:
        """Adopt new viewport half-extents; takes effect at the next wrap."""
        validate_bounds(half_width, half_height)
        self._half_width = float(half_width)
        self._half_height = float(half_height)
        logger.debug("bounds changed to (%.1f, %.1f)", self._half_width, self._half_height)

    def reset(self) -> None:
        # Bounds belong to the viewport and survive a reset.
        self._store.clear()
        self._rng.reset()
        self._metrics = None
        self._bootstrap_population()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "World":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def step(self, tick: int) -> TickMetrics:
        start = perf_counter()
        config = self._config
        flock = config.flock

        snapshot = self._store.snapshot()
        neighbor_checks, neighbor_pairs, separation_pairs = self._apply_steering(snapshot)
        movement.integrate(self._store, config.time_step)
        wrapped = movement.wrap(self._store, self._half_width, self._half_height, flock.agent_radius)

        duration_ms = (perf_counter() - start) * 1000.0
        self._metrics = metrics_system.create_metrics(
            tick,
            neighbor_checks,
            neighbor_pairs,
            separation_pairs,
            wrapped,
            duration_ms,
            metrics_system.speed_stats(self._store),
        )
        return self._metrics

    def view(self) -> Tuple[AgentView, ...]:
        return self._store.snapshot()

    def agent(self, agent_id: int) -> AgentView:
        return AgentView.of(self._store.get(agent_id))

    def snapshot(self, completed_ticks: int) -> Snapshot:
        """Presentation payload after `completed_ticks` ticks.

        `metrics.tick` is the index of the last completed tick, so it is
        `completed_ticks - 1`; before the first tick it is -1.
        """
        metrics = self._metrics if self._metrics is not None else self._metrics_from_state(completed_ticks - 1)
        config = self._config
        metadata = SnapshotMetadata(
            sim_dt=config.time_step,
            tick_rate=1.0 / config.time_step,
            seed=self._rng.seed,
            population_size=len(self._store),
            config_version=config.config_version,
        )
        return Snapshot(
            completed_ticks=completed_ticks,
            metrics=metrics,
            agents=[self._agent_snapshot(agent) for agent in self._store],
            world=SnapshotWorld(
                half_width=self._half_width,
                half_height=self._half_height,
                agent_radius=config.flock.agent_radius,
            ),
            metadata=metadata,
        )

    def _apply_steering(self, snapshot: Sequence[AgentView]) -> Tuple[int, int, int]:
        workers = self._config.workers
        if workers <= 1 or len(snapshot) < 2 * workers:
            return self._steer_range(snapshot, 0, len(snapshot))

        if self._executor is None:
            logger.debug("starting steering pool with %d workers", workers)
            self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="birbs-steer")
        futures = [
            self._executor.submit(self._steer_range, snapshot, start, stop)
            for start, stop in _chunk_bounds(len(snapshot), workers)
        ]
        # Every chunk must finish before integration reads the velocities.
        totals = [future.result() for future in futures]
        return (
            sum(item[0] for item in totals),
            sum(item[1] for item in totals),
            sum(item[2] for item in totals),
        )

    def _steer_range(self, snapshot: Sequence[AgentView], start: int, stop: int) -> Tuple[int, int, int]:
        flock = self._config.flock
        checks = 0
        neighbors = 0
        too_close = 0
        for index in range(start, stop):
            result = compute_steering(snapshot[index], snapshot, flock)
            # Snapshot order matches arena order; this task owns agents [start, stop).
            self._store[index].velocity += result.delta
            checks += result.checks
            neighbors += result.neighbor_count
            too_close += result.separation_count
        return checks, neighbors, too_close

    def _bootstrap_population(self) -> None:
        if self._initial_agents is not None:
            for view in self._initial_agents:
                self._store.add(view.id, view.position, view.velocity)
            return
        flock = self._config.flock
        legacy = self._config.initial_velocity == "legacy"
        for agent_id in range(flock.population_size):
            position = Vector2(
                self._rng.next_range(-self._half_width, self._half_width),
                self._rng.next_range(-self._half_height, self._half_height),
            )
            if legacy:
                velocity = Vector2(self._rng.next_range(-1.0, 1.0), self._rng.next_range(-1.0, 1.0))
            else:
                velocity = self._rng.next_unit_circle() * flock.speed
            self._store.add(agent_id, position, velocity)

    def _metrics_from_state(self, tick: int) -> TickMetrics:
        return metrics_system.create_metrics(tick, 0, 0, 0, 0, 0.0, metrics_system.speed_stats(self._store))

    @staticmethod
    def _agent_snapshot(agent: Agent) -> Dict[str, Any]:
        velocity = agent.velocity
        return {
            "id": agent.id,
            "x": agent.position.x,
            "y": agent.position.y,
            "vx": velocity.x,
            "vy": velocity.y,
            "heading": heading_from_velocity(velocity),
            "speed": velocity.length(),
        }
