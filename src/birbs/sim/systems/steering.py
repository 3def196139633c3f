from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from pygame.math import Vector2

from ..core.agent import AgentView
from ..core.config import FlockConfig
from ..utils.math2d import clamp_length, safe_normalize_xy
from .neighbors import NeighborSums, scan


@dataclass(slots=True)
class SteeringResult:
    cohesion: Vector2
    alignment: Vector2
    separation: Vector2
    neighbor_count: int
    separation_count: int
    checks: int

    @property
    def delta(self) -> Vector2:
        return self.cohesion + self.alignment + self.separation


def steer_toward(direction: Vector2, velocity: Vector2, speed: float, max_steer: float) -> Vector2:
    """Reynolds steering: desired velocity along ``direction`` minus current velocity, capped."""
    desired = safe_normalize_xy(direction.x, direction.y) * speed
    return clamp_length(desired - velocity, max_steer)


def cohesion(sums: NeighborSums, position: Vector2, velocity: Vector2, flock: FlockConfig) -> Vector2:
    if sums.neighbor_count == 0:
        return Vector2()
    count = sums.neighbor_count
    center = Vector2(sums.position_sum_x / count, sums.position_sum_y / count)
    offset = center - position
    if offset.length_squared() == 0.0:
        return Vector2()
    return steer_toward(offset, velocity, flock.speed, flock.max_steer) * flock.cohesion_weight


def alignment(sums: NeighborSums, velocity: Vector2, flock: FlockConfig) -> Vector2:
    if sums.neighbor_count == 0:
        return Vector2()
    count = sums.neighbor_count
    average = Vector2(sums.velocity_sum_x / count, sums.velocity_sum_y / count)
    # A zero average stays zero, so the rule brakes toward neighbors at rest.
    return steer_toward(average, velocity, flock.speed, flock.max_steer) * flock.alignment_weight


def separation(sums: NeighborSums, velocity: Vector2, flock: FlockConfig) -> Vector2:
    if sums.separation_count == 0:
        return Vector2()
    count = sums.separation_count
    push = Vector2(sums.separation_sum_x / count, sums.separation_sum_y / count)
    if push.length_squared() == 0.0:
        return Vector2()
    return steer_toward(push, velocity, flock.speed, flock.max_steer) * flock.separation_weight


def compute_steering(subject: AgentView, snapshot: Sequence[AgentView], flock: FlockConfig) -> SteeringResult:
    """Evaluate all three rules for ``subject`` against the frozen ``snapshot``."""
    sums = scan(subject, snapshot, flock.neighbor_radius, flock.separation_radius)
    position = subject.position
    velocity = subject.velocity
    return SteeringResult(
        cohesion=cohesion(sums, position, velocity, flock),
        alignment=alignment(sums, velocity, flock),
        separation=separation(sums, velocity, flock),
        neighbor_count=sums.neighbor_count,
        separation_count=sums.separation_count,
        checks=sums.checks,
    )
