"""Mutable per-player game state and the store that owns it.

GameState holds only primitives so it serializes to JSON directly.
GameStateStore is its sole writer: every mutation is persisted (best effort)
and then announced to subscribers as an immutable GameSnapshot.
"""

import datetime as dt
import time
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Protocol

from ..logging import get_logger
from .corruption import clamp_level
from .world import START_ROOM, RoomId

logger = get_logger(__name__)

SCHEMA_VERSION = "1.0.0"
HISTORY_LIMIT = 100
DEFAULT_MAX_INVENTORY = 5
CORRUPTION_WARNING_LEVEL = 50
CORRUPTION_WARNING = "WARNING: System corruption detected"


@dataclass
class GameState:
    """All mutable per-player state. Holds only primitive types."""

    current_room: RoomId = START_ROOM
    inventory: list[str] = field(default_factory=list)
    max_inventory: int = DEFAULT_MAX_INVENTORY
    flags: dict[str, bool] = field(default_factory=dict)
    corruption: int = 0
    moves: int = 0
    start_time: float = field(default_factory=time.time)
    history: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["current_room"] = str(self.current_room)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameState":
        """Rebuild a state from a snapshot; raises KeyError/ValueError/TypeError."""
        return cls(
            current_room=RoomId(data["current_room"]),
            inventory=[str(item) for item in data["inventory"]],
            max_inventory=int(data["max_inventory"]),
            flags={str(k): bool(v) for k, v in data["flags"].items()},
            corruption=clamp_level(int(data["corruption"])),
            moves=int(data["moves"]),
            start_time=float(data["start_time"]),
            history=[str(line) for line in data["history"]][-HISTORY_LIMIT:],
        )


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only view of a GameState handed to listeners and the UI."""

    current_room: RoomId
    inventory: tuple[str, ...]
    max_inventory: int
    flags: Mapping[str, bool]
    corruption: int
    moves: int
    start_time: float
    history: tuple[str, ...]

    @classmethod
    def of(cls, state: GameState) -> "GameSnapshot":
        return cls(
            current_room=state.current_room,
            inventory=tuple(state.inventory),
            max_inventory=state.max_inventory,
            flags=MappingProxyType(dict(state.flags)),
            corruption=state.corruption,
            moves=state.moves,
            start_time=state.start_time,
            history=tuple(state.history),
        )


def new_game_state(max_inventory: int = DEFAULT_MAX_INVENTORY) -> GameState:
    """Create a fresh game state in the start room."""
    return GameState(max_inventory=max_inventory)


def format_elapsed(seconds: float) -> str:
    """Format a duration as HH:MM:SS."""
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class SnapshotBackend(Protocol):
    def write(self, payload: dict[str, Any]) -> None: ...

    def read(self) -> dict[str, Any] | None: ...


Listener = Callable[[GameSnapshot], None]


class GameStateStore:
    """Owns the GameState; every write persists and notifies."""

    def __init__(
        self,
        backend: SnapshotBackend | None = None,
        max_inventory: int = DEFAULT_MAX_INVENTORY,
        autoload: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self._backend = backend
        self._max_inventory = max_inventory
        self._clock = clock
        self._listeners: list[Listener] = []
        self._state = self._fresh_state()
        if autoload:
            self.load()

    @property
    def state(self) -> GameSnapshot:
        return GameSnapshot.of(self._state)

    def _fresh_state(self) -> GameState:
        state = new_game_state(self._max_inventory)
        state.start_time = self._clock()
        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self) -> None:
        self.save()
        self._notify()

    def _notify(self) -> None:
        snapshot = GameSnapshot.of(self._state)
        for listener in list(self._listeners):
            listener(snapshot)

    def _log(self, entry: str) -> None:
        stamp = dt.datetime.fromtimestamp(self._clock(), dt.UTC).strftime("%H:%M:%S")
        self._state.history.append(f"[{stamp}] {entry}")
        if len(self._state.history) > HISTORY_LIMIT:
            del self._state.history[: len(self._state.history) - HISTORY_LIMIT]

    def move_to_room(self, room_id: RoomId) -> None:
        self._state.current_room = RoomId(room_id)
        self._state.moves += 1
        self._log(f"Entered {room_id}")
        self._changed()

    def add_item(self, item: str) -> bool:
        if len(self._state.inventory) >= self._state.max_inventory:
            return False
        self._state.inventory.append(item)
        self._log(f"Acquired command: {item}")
        self._changed()
        return True

    def remove_item(self, item: str) -> bool:
        if item not in self._state.inventory:
            return False
        self._state.inventory.remove(item)
        self._log(f"Used command: {item}")
        self._changed()
        return True

    def has_item(self, item: str) -> bool:
        return item in self._state.inventory

    def set_flag(self, key: str, value: bool) -> None:
        self._state.flags[key] = value
        self._changed()

    def get_flag(self, key: str) -> bool:
        return self._state.flags.get(key, False)

    def increase_corruption(self, amount: int) -> None:
        self._state.corruption = clamp_level(self._state.corruption + amount)
        if self._state.corruption > CORRUPTION_WARNING_LEVEL:
            self._log(CORRUPTION_WARNING)
        self._changed()

    def decrease_corruption(self, amount: int) -> None:
        self._state.corruption = clamp_level(self._state.corruption - amount)
        self._changed()

    def expand_inventory(self, extra: int) -> None:
        self._state.max_inventory += extra
        self._log(f"Memory expanded: {self._state.max_inventory} slots")
        self._changed()

    def reset(self) -> None:
        """Replace the whole state with a fresh one."""
        self._state = self._fresh_state()
        self._changed()

    def elapsed(self) -> float:
        return max(0.0, self._clock() - self._state.start_time)

    def formatted_elapsed(self) -> str:
        return format_elapsed(self.elapsed())

    def save(self) -> None:
        if self._backend is None:
            return
        self._backend.write(
            {
                "state": self._state.to_dict(),
                "timestamp": self._clock(),
                "version": SCHEMA_VERSION,
            }
        )

    def load(self) -> bool:
        """Replace the state with the persisted snapshot, if it is usable."""
        if self._backend is None:
            return False
        payload = self._backend.read()
        if payload is None:
            return False
        if payload.get("version") != SCHEMA_VERSION:
            logger.warning("snapshot_ignored", reason="version", version=payload.get("version"))
            return False
        try:
            state = GameState.from_dict(payload["state"])
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            logger.warning("snapshot_ignored", reason="malformed", error=str(exc))
            return False
        self._state = state
        logger.info("snapshot_loaded", room=str(state.current_room), moves=state.moves)
        self._notify()
        return True
