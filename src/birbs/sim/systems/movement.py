from __future__ import annotations

from typing import Iterable

from ..core.agent import Agent


def integrate(agents: Iterable[Agent], dt: float) -> None:
    for agent in agents:
        agent.position += agent.velocity * dt


def wrap_position(agent: Agent, half_width: float, half_height: float, radius: float) -> bool:
    """Teleport ``agent`` past the opposite edge once it is fully outside.

    Each axis is checked on its own, so a diagonal exit wraps both
    coordinates in the same call. Velocity is left untouched.
    """
    position = agent.position
    wrapped = False
    if position.x - radius > half_width:
        position.x = -half_width - radius
        wrapped = True
    elif position.x + radius < -half_width:
        position.x = half_width + radius
        wrapped = True
    if position.y - radius > half_height:
        position.y = -half_height - radius
        wrapped = True
    elif position.y + radius < -half_height:
        position.y = half_height + radius
        wrapped = True
    return wrapped


def wrap(agents: Iterable[Agent], half_width: float, half_height: float, radius: float) -> int:
    count = 0
    for agent in agents:
        if wrap_position(agent, half_width, half_height, radius):
            count += 1
    return count
