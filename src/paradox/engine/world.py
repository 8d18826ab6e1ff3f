"""Immutable room catalog and navigation queries.

The catalog is loaded once from rooms.toml at startup. Callers only ever
receive copies of rooms, so item lists can be mutated per session without
touching the shared catalog.
"""

from collections import deque
from dataclasses import dataclass, field, replace
from enum import StrEnum


class RoomId(StrEnum):
    BOOT_SEQUENCE = "boot-sequence"
    FILE_MAZE = "file-maze"
    PROCESS_PRISON = "process-prison"
    MEMORY_LEAK = "memory-leak"
    ROOT_VAULT = "root-vault"


class Direction(StrEnum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    UP = "up"
    DOWN = "down"


class Item(StrEnum):
    """Command items the player can carry."""

    LS = "ls"
    GREP = "grep"
    CHMOD = "chmod"
    SUDO = "sudo"
    CAT = "cat"
    ECHO = "echo"
    PIPE = "pipe"
    KILL = "kill"


START_ROOM = RoomId.BOOT_SEQUENCE

ITEM_NAMES = frozenset(item.value for item in Item)


class RoomNotFoundError(KeyError):
    """Raised when a room id is not present in the catalog."""


class CatalogError(ValueError):
    """Raised at startup when the room catalog is inconsistent."""


@dataclass
class Room:
    """A location in the game world."""

    id: RoomId
    name: str
    description: str
    ascii: str | None = None
    exits: dict[Direction, RoomId] = field(default_factory=dict)
    items: list[str] = field(default_factory=list)
    puzzles: list[str] = field(default_factory=list)
    corrupted: bool = False

    def copy(self) -> "Room":
        return replace(
            self,
            exits=dict(self.exits),
            items=list(self.items),
            puzzles=list(self.puzzles),
        )


def reachable_from(rooms: dict[RoomId, Room], start: RoomId) -> set[RoomId]:
    """Breadth-first traversal of exits starting at ``start``."""
    visited: set[RoomId] = set()
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        for destination in rooms[current].exits.values():
            if destination not in visited:
                queue.append(destination)
    return visited


def validate_catalog(rooms: dict[RoomId, Room], start: RoomId = START_ROOM) -> None:
    """Check graph closure and reachability; raise CatalogError on a defect."""
    missing = set(RoomId) - set(rooms)
    if missing:
        raise CatalogError(f"rooms not defined: {sorted(missing)}")

    for room in rooms.values():
        for direction, destination in room.exits.items():
            if destination not in rooms:
                raise CatalogError(
                    f"{room.id} exit {direction} leads to unknown room {destination}"
                )

    unreachable = set(rooms) - reachable_from(rooms, start)
    if unreachable:
        raise CatalogError(f"rooms unreachable from {start}: {sorted(unreachable)}")


class RoomGraph:
    """Read-only navigation over the room catalog."""

    def __init__(self, rooms: dict[RoomId, Room], start: RoomId = START_ROOM):
        validate_catalog(rooms, start)
        self._rooms = {room_id: room.copy() for room_id, room in rooms.items()}
        self.start = start

    def get(self, room_id: RoomId | str) -> Room:
        try:
            return self._rooms[RoomId(room_id)].copy()
        except (KeyError, ValueError):
            raise RoomNotFoundError(f"Room {room_id} not found") from None

    def all_rooms(self) -> list[Room]:
        return [room.copy() for room in self._rooms.values()]

    def can_move(self, room: Room, direction: Direction | str) -> bool:
        return direction in room.exits

    def destination(self, room: Room, direction: Direction | str) -> RoomId | None:
        return room.exits.get(direction)

    def connections(self) -> dict[RoomId, set[RoomId]]:
        return {
            room_id: set(room.exits.values()) for room_id, room in self._rooms.items()
        }

    def is_connected(self) -> bool:
        return reachable_from(self._rooms, self.start) == set(self._rooms)
