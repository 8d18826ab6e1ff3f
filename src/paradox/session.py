"""Session layer bridging the game engine and the player's terminal."""

import random
from dataclasses import dataclass

from .engine.combos import CombinationCatalog
from .engine.commands import Game, describe_room, handle_command
from .engine.corruption import CorruptionSimulator, CorruptionState
from .engine.puzzles import PuzzleEngine
from .engine.state import GameSnapshot, GameStateStore
from .engine.world import Room, RoomGraph
from .logging import get_logger

logger = get_logger(__name__)

GLITCH_WIDTH = 40
GLITCH_HEIGHT = 3


@dataclass(frozen=True)
class TurnResult:
    """Output of one command plus the cosmetic effects the UI should apply."""

    lines: tuple[str, ...]
    input_delay_ms: int = 0
    echo: str | None = None
    glitch: str = ""
    time_dilation: float = 1.0


@dataclass(frozen=True)
class RenderSnapshot:
    """Everything a UI needs to draw the screen."""

    state: GameSnapshot
    room: Room
    corruption: CorruptionState
    puzzles_solved: int
    puzzles_total: int


class GameSession:
    """Wraps the state store and engine components for one player."""

    def __init__(
        self,
        store: GameStateStore,
        graph: RoomGraph,
        puzzles: PuzzleEngine | None = None,
        combos: CombinationCatalog | None = None,
        corruption: CorruptionSimulator | None = None,
        rng: random.Random | None = None,
    ):
        rng = rng or random.Random()
        if puzzles is None:
            puzzles = PuzzleEngine(
                room_puzzles={room.id: tuple(room.puzzles) for room in graph.all_rooms()}
            )
        self.store = store
        self.game = Game(
            store=store,
            graph=graph,
            puzzles=puzzles,
            combos=combos or CombinationCatalog(),
            corruption=corruption or CorruptionSimulator(rng),
            rng=rng,
        )
        self.game.corruption.set_level(store.state.corruption)
        self.game.restore_progress()
        self.game.refresh_rooms()
        self._unsubscribe = store.subscribe(self._sync_corruption)

    @property
    def corruption(self) -> CorruptionSimulator:
        return self.game.corruption

    def _sync_corruption(self, snapshot: GameSnapshot) -> None:
        if snapshot.corruption != self.corruption.level:
            previous = self.corruption.level
            self.corruption.set_level(snapshot.corruption)
            logger.debug(
                "corruption_synced", previous=previous, level=snapshot.corruption
            )

    def intro(self) -> list[str]:
        """Lines shown when the terminal first connects."""
        return [
            "TERMINAL PARADOX v0.1",
            "You wake inside a failing machine. Find root access and a way out.",
            'Type "help" for commands.',
        ] + describe_room(self.game)

    def process_command(self, raw_input: str) -> TurnResult:
        """Run one line of player input through the corruption and engine."""
        corruption = self.corruption
        text = corruption.intercept_command(raw_input)
        command, lines = handle_command(self.game, text)
        logger.info(
            "command_processed",
            raw=raw_input,
            command=str(command.type),
            intercepted=text != raw_input,
            corruption=corruption.level,
        )

        return TurnResult(
            lines=tuple(corruption.corrupt_text(line) for line in lines),
            input_delay_ms=corruption.input_delay(),
            echo=raw_input if corruption.should_echo() else None,
            glitch=corruption.generate_glitch(GLITCH_WIDTH, GLITCH_HEIGHT),
            time_dilation=corruption.time_dilation(),
        )

    def snapshot(self) -> RenderSnapshot:
        progress = self.game.puzzles.progress()
        return RenderSnapshot(
            state=self.store.state,
            room=self.game.room.copy(),
            corruption=self.corruption.state(),
            puzzles_solved=progress["solved"],
            puzzles_total=progress["total"],
        )

    def close(self) -> None:
        """Detach from the store and persist a final snapshot."""
        self._unsubscribe()
        self.store.save()
