"""Shared test fixtures for Terminal Paradox."""

import random
from pathlib import Path

import pytest
from sqlmodel import SQLModel, create_engine

from paradox.config import Config
from paradox.engine.loader import load_room_graph
from paradox.engine.state import GameStateStore
from paradox.engine.world import RoomGraph
from paradox.session import GameSession
from paradox.storage import SnapshotStore


class FixedRandom(random.Random):
    """A Random whose random() always returns the same value.

    0.99 keeps every probabilistic effect from firing; 0.0 makes each one
    fire whenever its effect is active.
    """

    def __init__(self, value: float):
        self.value = value
        super().__init__(0)

    def random(self) -> float:
        return self.value


class ScriptedRandom(random.Random):
    """A Random whose random() hands out a fixed sequence of values."""

    def __init__(self, values: list[float]):
        self.values = list(values)
        super().__init__(0)

    def random(self) -> float:
        return self.values.pop(0)


@pytest.fixture
def graph() -> RoomGraph:
    return load_room_graph()


@pytest.fixture
def calm_rng() -> FixedRandom:
    return FixedRandom(0.99)


@pytest.fixture
def db_engine(tmp_path: Path):
    db_url = f"sqlite:///{tmp_path}/test.db"
    engine = create_engine(db_url)
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def snapshot_store(db_engine) -> SnapshotStore:
    return SnapshotStore(db_engine, slot="test")


@pytest.fixture
def store(snapshot_store: SnapshotStore) -> GameStateStore:
    return GameStateStore(backend=snapshot_store, clock=lambda: 1000.0)


@pytest.fixture
def session(store: GameStateStore, graph: RoomGraph, calm_rng) -> GameSession:
    return GameSession(store, graph, rng=calm_rng)


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    return Config(database_url=f"sqlite:///{tmp_path}/test.db", seed=7)


@pytest.fixture
def fixed_rng():
    """Factory for FixedRandom instances."""
    return FixedRandom


@pytest.fixture
def scripted_rng():
    """Factory for ScriptedRandom instances."""
    return ScriptedRandom
