"""Application factory and terminal loop for Terminal Paradox."""

import random
import sys
import time
from typing import TextIO

from sqlmodel import SQLModel, create_engine

from .config import Config
from .engine.loader import default_rooms_path, load_room_graph
from .engine.state import GameStateStore
from .logging import bind_session_context, get_logger
from .session import GameSession, TurnResult
from .storage import SnapshotStore

logger = get_logger(__name__)

PROMPT = "> "


def create_session(config: Config | None = None) -> GameSession:
    """Create the database, load the world, and build a ready session."""
    config = config or Config.from_env()
    bind_session_context(slot=config.save_slot, seed=config.seed)

    engine = create_engine(config.database_url)
    SQLModel.metadata.create_all(engine)
    logger.debug("database_setup_complete", url=config.database_url)

    graph = load_room_graph(default_rooms_path())
    logger.info("world_loaded", rooms=len(graph.all_rooms()))

    store = GameStateStore(
        backend=SnapshotStore(engine, slot=config.save_slot),
        max_inventory=config.max_inventory,
    )
    session = GameSession(store, graph, rng=random.Random(config.seed))
    logger.info(
        "session_started",
        slot=config.save_slot,
        room=str(store.state.current_room),
        corruption=store.state.corruption,
    )
    return session


def render(result: TurnResult, out: TextIO) -> None:
    if result.glitch:
        print(result.glitch, file=out)
    for line in result.lines:
        print(line, file=out)
    if result.echo:
        print(f"> {result.echo}", file=out)


def run(session: GameSession, stdin: TextIO = sys.stdin, out: TextIO = sys.stdout) -> None:
    """Read commands until end of input, rendering each turn."""
    for line in session.intro():
        print(line, file=out)

    delay_ms = 0
    while True:
        print(PROMPT, end="", file=out, flush=True)
        raw = stdin.readline()
        if not raw:
            break
        if delay_ms:
            time.sleep(delay_ms / 1000)
        result = session.process_command(raw.rstrip("\n"))
        render(result, out)
        delay_ms = result.input_delay_ms

    session.close()
    logger.info("session_closed")
