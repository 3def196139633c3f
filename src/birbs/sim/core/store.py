from __future__ import annotations

from typing import Dict, Iterator, List, Tuple

from pygame.math import Vector2

from .agent import Agent, AgentView


class AgentStore:
    """Arena of agent records addressed by stable id.

    Agents are appended once while the population is bootstrapped and are
    never removed, so an agent's index in the arena never changes during a
    run.
    """

    def __init__(self) -> None:
        self._agents: List[Agent] = []
        self._id_to_index: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._agents)

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents)

    def __getitem__(self, index: int) -> Agent:
        return self._agents[index]

    def add(self, agent_id: int, position: Vector2, velocity: Vector2) -> Agent:
        if agent_id in self._id_to_index:
            raise KeyError(f"agent {agent_id} already exists")
        agent = Agent(id=agent_id, position=Vector2(position), velocity=Vector2(velocity))
        self._id_to_index[agent_id] = len(self._agents)
        self._agents.append(agent)
        return agent

    def get(self, agent_id: int) -> Agent:
        return self._agents[self._id_to_index[agent_id]]

    def clear(self) -> None:
        self._agents.clear()
        self._id_to_index.clear()

    def snapshot(self) -> Tuple[AgentView, ...]:
        """Copy every agent into an immutable buffer, in arena order."""
        return tuple(AgentView.of(agent) for agent in self._agents)
