from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from ..core.agent import AgentView

_MIN_SEPARATION_DISTANCE = 1e-9


@dataclass(slots=True)
class NeighborSums:
    """Running sums gathered for one agent during a neighbor scan."""

    neighbor_count: int = 0
    position_sum_x: float = 0.0
    position_sum_y: float = 0.0
    velocity_sum_x: float = 0.0
    velocity_sum_y: float = 0.0
    separation_count: int = 0
    separation_sum_x: float = 0.0
    separation_sum_y: float = 0.0
    checks: int = 0


def scan(
    subject: AgentView,
    snapshot: Sequence[AgentView],
    neighbor_radius: float,
    separation_radius: float,
) -> NeighborSums:
    """Brute-force pass over every other agent in ``snapshot``.

    Agents closer than ``neighbor_radius`` feed cohesion and alignment.
    Agents closer than ``separation_radius`` add a repulsion term of
    ``normalize(subject - other) / distance``; a coincident agent has no
    direction and adds nothing, though it is still counted.
    """
    sums = NeighborSums()
    pos_x = subject.x
    pos_y = subject.y
    subject_id = subject.id
    for other in snapshot:
        if other.id == subject_id:
            continue
        sums.checks += 1
        offset_x = pos_x - other.x
        offset_y = pos_y - other.y
        distance = math.hypot(offset_x, offset_y)

        if distance < neighbor_radius:
            sums.neighbor_count += 1
            sums.position_sum_x += other.x
            sums.position_sum_y += other.y
            sums.velocity_sum_x += other.vx
            sums.velocity_sum_y += other.vy

        if distance < separation_radius:
            sums.separation_count += 1
            if distance > 0.0:
                # unit offset scaled by 1/d; the floor keeps the weight finite
                weight = 1.0 / max(distance, _MIN_SEPARATION_DISTANCE)
                sums.separation_sum_x += offset_x / distance * weight
                sums.separation_sum_y += offset_y / distance * weight
    return sums
