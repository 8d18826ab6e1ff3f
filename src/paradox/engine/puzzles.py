"""Typed puzzles and the per-session puzzle registry.

Puzzle kinds form a closed set; each kind maps to one validator in
_VALIDATORS. PuzzleEngine owns the mutable PuzzleState for every puzzle.
"""

import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum

from ..logging import get_logger
from .validators import (
    PuzzleResult,
    validate_kill_order,
    validate_pattern,
    validate_permission,
)
from .world import RoomId

logger = get_logger(__name__)

PROMPT_GLITCH_CHARS = "░▒▓█▌▐│┤"
PROMPT_CORRUPTION_THRESHOLD = 25


class PuzzleKind(StrEnum):
    BINARY_PERMISSION = "binary-permission"
    REGEX_ESCAPE = "regex-escape"
    PROCESS_TREE = "process-tree"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    NIGHTMARE = "nightmare"


@dataclass(frozen=True)
class Hint:
    threshold: int
    text: str
    cost: int = 0


@dataclass(frozen=True)
class Puzzle:
    id: str
    kind: PuzzleKind
    name: str
    description: str
    difficulty: Difficulty
    corruption_modifier: int
    hints: tuple[Hint, ...]

    def validate(self, text: str) -> PuzzleResult:
        return _VALIDATORS[self.kind](text)


@dataclass
class PuzzleState:
    attempts: int = 0
    solved: bool = False
    hints_revealed: list[int] = field(default_factory=list)
    last_attempt: str | None = None
    solved_at: float | None = None


_VALIDATORS: dict[PuzzleKind, Callable[[str], PuzzleResult]] = {
    PuzzleKind.BINARY_PERMISSION: validate_permission,
    PuzzleKind.REGEX_ESCAPE: validate_pattern,
    PuzzleKind.PROCESS_TREE: validate_kill_order,
}


def corrupt_prompt(text: str, corruption: int, rng: random.Random) -> str:
    """Glitch a puzzle description; whitespace and length are preserved."""
    if corruption < PROMPT_CORRUPTION_THRESHOLD:
        return text
    chance = corruption / 200
    return "".join(
        rng.choice(PROMPT_GLITCH_CHARS)
        if not ch.isspace() and rng.random() < chance
        else ch
        for ch in text
    )


PUZZLES = (
    Puzzle(
        id="binary-permission-1",
        kind=PuzzleKind.BINARY_PERMISSION,
        name="Access Denied",
        description="Set permissions to rwxr-xr-- to unlock the escape script",
        difficulty=Difficulty.EASY,
        corruption_modifier=3,
        hints=(
            Hint(2, "chmod uses octal notation: r=4, w=2, x=1"),
            Hint(4, "Owner needs all permissions (7), group needs read+execute (5)"),
            Hint(6, "Others need read only (4)", cost=3),
            Hint(8, "The answer is 754", cost=8),
        ),
    ),
    Puzzle(
        id="regex-escape-1",
        kind=PuzzleKind.REGEX_ESCAPE,
        name="Pattern Recognition",
        description=(
            "Match the corrupted log pattern: "
            "[ERROR] *corruption* detected at 0x????"
        ),
        difficulty=Difficulty.MEDIUM,
        corruption_modifier=5,
        hints=(
            Hint(3, "Remember to anchor your pattern with ^ and $"),
            Hint(5, "The brackets around ERROR need escaping: \\[ERROR\\]"),
            Hint(7, "Use .* for any characters and 0x[0-9a-fA-F]+ for hex", cost=5),
            Hint(
                10,
                "Full solution: ^\\[ERROR\\].*corruption.*0x[0-9a-fA-F]+$",
                cost=10,
            ),
        ),
    ),
    Puzzle(
        id="process-tree-1",
        kind=PuzzleKind.PROCESS_TREE,
        name="Fork Bomb Defusal",
        description=(
            "Kill the zombie processes in the correct order "
            "to prevent a fork bomb"
        ),
        difficulty=Difficulty.HARD,
        corruption_modifier=10,
        hints=(
            Hint(2, "Kill child processes before their parents"),
            Hint(4, "Zombie processes have living parents that need to reap them"),
            Hint(6, "Process 1337 is the parent of the fork bomb", cost=5),
            Hint(8, "Kill order: 3047, 2048, then 1337", cost=10),
        ),
    ),
)

ROOM_PUZZLES: dict[RoomId, tuple[str, ...]] = {
    RoomId.BOOT_SEQUENCE: ("binary-permission-1",),
    RoomId.FILE_MAZE: ("regex-escape-1", "binary-permission-1"),
    RoomId.PROCESS_PRISON: ("process-tree-1",),
    RoomId.MEMORY_LEAK: (),
    RoomId.ROOT_VAULT: ("regex-escape-1",),
}


class PuzzleEngine:
    """Registry of puzzles, their room assignments and attempt state."""

    def __init__(
        self,
        puzzles: tuple[Puzzle, ...] = PUZZLES,
        room_puzzles: dict[RoomId, tuple[str, ...]] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._puzzles = {puzzle.id: puzzle for puzzle in puzzles}
        self._room_puzzles = dict(room_puzzles or ROOM_PUZZLES)
        self._states = {puzzle_id: PuzzleState() for puzzle_id in self._puzzles}
        self._clock = clock

    def get(self, puzzle_id: str) -> Puzzle | None:
        return self._puzzles.get(puzzle_id)

    def state(self, puzzle_id: str) -> PuzzleState | None:
        return self._states.get(puzzle_id)

    def list_for_room(self, room_id: RoomId) -> list[Puzzle]:
        return [
            self._puzzles[puzzle_id]
            for puzzle_id in self._room_puzzles.get(room_id, ())
            if puzzle_id in self._puzzles
        ]

    def unsolved_for_room(self, room_id: RoomId) -> list[Puzzle]:
        return [
            puzzle
            for puzzle in self.list_for_room(room_id)
            if not self._states[puzzle.id].solved
        ]

    def attempt(self, puzzle_id: str, text: str) -> PuzzleResult:
        """Validate one submission; every call counts as an attempt."""
        puzzle = self._puzzles.get(puzzle_id)
        if puzzle is None:
            return PuzzleResult(False, "Puzzle not found", 5)

        state = self._states[puzzle_id]
        state.attempts += 1
        state.last_attempt = text

        result = puzzle.validate(text)
        logger.debug(
            "puzzle_attempted",
            puzzle=puzzle_id,
            attempts=state.attempts,
            success=result.success,
        )
        if result.success and not state.solved:
            state.solved = True
            state.solved_at = self._clock()
            logger.info("puzzle_solved", puzzle=puzzle_id, attempts=state.attempts)
        return result

    def hints(self, puzzle_id: str) -> list[str]:
        """Hints unlocked by the attempt count and not yet revealed."""
        puzzle = self._puzzles.get(puzzle_id)
        if puzzle is None:
            return []
        state = self._states[puzzle_id]
        return [
            hint.text
            for index, hint in enumerate(puzzle.hints)
            if state.attempts >= hint.threshold and index not in state.hints_revealed
        ]

    def reveal_hint(self, puzzle_id: str, index: int) -> Hint | None:
        puzzle = self._puzzles.get(puzzle_id)
        if puzzle is None or not 0 <= index < len(puzzle.hints):
            return None
        state = self._states[puzzle_id]
        hint = puzzle.hints[index]
        if state.attempts < hint.threshold or index in state.hints_revealed:
            return None
        state.hints_revealed.append(index)
        return hint

    def next_hint_index(self, puzzle_id: str) -> int | None:
        puzzle = self._puzzles.get(puzzle_id)
        if puzzle is None:
            return None
        state = self._states[puzzle_id]
        for index, hint in enumerate(puzzle.hints):
            if state.attempts >= hint.threshold and index not in state.hints_revealed:
                return index
        return None

    def progress(self) -> dict[str, int]:
        total = len(self._puzzles)
        solved = sum(1 for state in self._states.values() if state.solved)
        percentage = round(solved / total * 100) if total else 0
        return {"total": total, "solved": solved, "percentage": percentage}

    def solved_ids(self) -> list[str]:
        return [pid for pid, state in self._states.items() if state.solved]

    def mark_solved(self, puzzle_id: str) -> None:
        state = self._states.get(puzzle_id)
        if state is not None and not state.solved:
            state.solved = True
            state.solved_at = self._clock()

    def reset(self, puzzle_id: str) -> None:
        if puzzle_id in self._puzzles:
            self._states[puzzle_id] = PuzzleState()

    def reset_all(self) -> None:
        for puzzle_id in self._puzzles:
            self.reset(puzzle_id)
