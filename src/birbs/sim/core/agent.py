from __future__ import annotations

from dataclasses import dataclass

from pygame.math import Vector2


@dataclass(slots=True)
class Agent:
    id: int
    position: Vector2
    velocity: Vector2


@dataclass(frozen=True, slots=True)
class AgentView:
    """Immutable copy of one agent's state at a single instant."""

    id: int
    x: float
    y: float
    vx: float
    vy: float

    @property
    def position(self) -> Vector2:
        return Vector2(self.x, self.y)

    @property
    def velocity(self) -> Vector2:
        return Vector2(self.vx, self.vy)

    @classmethod
    def of(cls, agent: Agent) -> "AgentView":
        return cls(
            id=agent.id,
            x=agent.position.x,
            y=agent.position.y,
            vx=agent.velocity.x,
            vy=agent.velocity.y,
        )
