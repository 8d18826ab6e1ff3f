"""Parse the packaged rooms.toml data file into a RoomGraph.

Each ``[[room]]`` table becomes a Room. Unknown ids, directions or items are
configuration defects and raise CatalogError before the game starts.
"""

import tomllib
from importlib import resources
from pathlib import Path
from typing import Any

from .world import (
    ITEM_NAMES,
    START_ROOM,
    CatalogError,
    Direction,
    Room,
    RoomGraph,
    RoomId,
)


def default_rooms_path() -> Path:
    """Locate rooms.toml via importlib.resources (works when installed in a venv)."""
    return resources.files("paradox.data").joinpath("rooms.toml")


def _parse_exits(room_id: str, raw: dict[str, str]) -> dict[Direction, RoomId]:
    exits: dict[Direction, RoomId] = {}
    for direction, destination in raw.items():
        try:
            exits[Direction(direction)] = RoomId(destination)
        except ValueError:
            raise CatalogError(
                f"{room_id}: bad exit {direction!r} -> {destination!r}"
            ) from None
    return exits


def _parse_room(entry: dict[str, Any]) -> Room:
    try:
        room_id = RoomId(entry["id"])
    except (KeyError, ValueError):
        raise CatalogError(f"room with unknown id: {entry.get('id')!r}") from None

    items = list(entry.get("items", []))
    unknown = [item for item in items if item not in ITEM_NAMES]
    if unknown:
        raise CatalogError(f"{room_id}: unknown items {unknown}")

    return Room(
        id=room_id,
        name=entry.get("name", str(room_id)),
        description=entry.get("description", ""),
        ascii=entry.get("ascii"),
        exits=_parse_exits(room_id, entry.get("exits", {})),
        items=items,
        puzzles=list(entry.get("puzzles", [])),
        corrupted=bool(entry.get("corrupted", False)),
    )


def load_rooms(data_path: Path) -> dict[RoomId, Room]:
    """Parse rooms.toml and return rooms keyed by id."""
    with open(data_path, "rb") as fh:
        data = tomllib.load(fh)

    rooms: dict[RoomId, Room] = {}
    for entry in data.get("room", []):
        room = _parse_room(entry)
        if room.id in rooms:
            raise CatalogError(f"room {room.id} defined twice")
        rooms[room.id] = room
    return rooms


def load_room_graph(data_path: Path | None = None) -> RoomGraph:
    """Load and validate the room catalog."""
    return RoomGraph(load_rooms(data_path or default_rooms_path()), START_ROOM)
