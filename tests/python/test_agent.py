from __future__ import annotations

import pytest
from pygame.math import Vector2

from birbs.sim.core.agent import Agent, AgentView
from birbs.sim.core.store import AgentStore


def test_agent_uses_slots():
    agent = Agent(id=1, position=Vector2(), velocity=Vector2())
    assert not hasattr(agent, "__dict__")
    assert hasattr(Agent, "__slots__")
    assert hasattr(AgentView, "__slots__")


def test_store_indexes_by_stable_id():
    store = AgentStore()
    store.add(10, Vector2(1.0, 2.0), Vector2(3.0, 4.0))
    store.add(4, Vector2(-1.0, 0.0), Vector2(0.0, 0.0))

    assert len(store) == 2
    assert store.get(4).position == Vector2(-1.0, 0.0)
    assert [agent.id for agent in store] == [10, 4]
    with pytest.raises(KeyError):
        store.add(10, Vector2(), Vector2())
    with pytest.raises(KeyError):
        store.get(99)


def test_store_copies_vectors_on_add():
    position = Vector2(1.0, 1.0)
    store = AgentStore()
    agent = store.add(0, position, Vector2())
    position.x = 50.0
    assert agent.position.x == 1.0


def test_snapshot_is_detached_from_live_state():
    store = AgentStore()
    agent = store.add(0, Vector2(1.0, 2.0), Vector2(3.0, 4.0))
    snapshot = store.snapshot()

    agent.velocity += Vector2(1.0, 1.0)
    agent.position.x = 9.0

    assert snapshot == (AgentView(id=0, x=1.0, y=2.0, vx=3.0, vy=4.0),)
    assert snapshot[0].velocity == Vector2(3.0, 4.0)


def test_clear_empties_store():
    store = AgentStore()
    store.add(0, Vector2(), Vector2())
    store.clear()
    assert len(store) == 0
    assert store.snapshot() == ()
