"""Tests for snapshot persistence."""

import pytest
from sqlmodel import Session

from paradox.engine.state import SCHEMA_VERSION, GameStateStore, new_game_state
from paradox.engine.world import RoomId
from paradox.models import SavedSnapshot
from paradox.storage import SnapshotStore, decode_snapshot, encode_snapshot


def test_encode_decode():
    payload = {"state": {"moves": 3}, "version": SCHEMA_VERSION, "timestamp": 1.0}
    assert decode_snapshot(encode_snapshot(payload)) == payload


def test_decode_rejects_non_object():
    with pytest.raises(ValueError):
        decode_snapshot(encode_snapshot([1, 2, 3]))


def test_read_empty_slot(snapshot_store: SnapshotStore):
    assert snapshot_store.read() is None


def test_state_survives_restart(snapshot_store: SnapshotStore):
    """Every mutation is persisted and reloaded by a new store."""
    store = GameStateStore(backend=snapshot_store)
    store.move_to_room(RoomId.FILE_MAZE)
    store.add_item("ls")

    restored = GameStateStore(backend=snapshot_store)
    assert restored.state.current_room == RoomId.FILE_MAZE
    assert restored.state.inventory == ("ls",)
    assert restored.state.moves == 1


def test_row_metadata(snapshot_store: SnapshotStore, db_engine):
    store = GameStateStore(backend=snapshot_store)
    store.increase_corruption(12)
    with Session(db_engine) as session:
        saved = session.get(SavedSnapshot, 1)
        assert saved.slot == "test"
        assert saved.version == SCHEMA_VERSION
        assert saved.corruption == 12


def test_slots_are_independent(db_engine):
    first = GameStateStore(backend=SnapshotStore(db_engine, slot="a"))
    first.move_to_room(RoomId.FILE_MAZE)
    second = GameStateStore(backend=SnapshotStore(db_engine, slot="b"))
    assert second.state.current_room == RoomId.BOOT_SEQUENCE


def test_version_mismatch_ignored(snapshot_store: SnapshotStore):
    state = new_game_state()
    state.current_room = RoomId.ROOT_VAULT
    snapshot_store.write({"state": state.to_dict(), "version": "0.9.0", "timestamp": 0})

    store = GameStateStore(backend=snapshot_store)
    assert store.state.current_room == RoomId.BOOT_SEQUENCE
    assert not store.load()


def test_malformed_state_ignored(snapshot_store: SnapshotStore):
    snapshot_store.write(
        {"state": {"current_room": "nowhere"}, "version": SCHEMA_VERSION, "timestamp": 0}
    )
    store = GameStateStore(backend=snapshot_store)
    assert store.state.current_room == RoomId.BOOT_SEQUENCE
    assert store.state.moves == 0


def test_corrupt_blob_ignored(snapshot_store: SnapshotStore, db_engine):
    with Session(db_engine) as session:
        session.add(SavedSnapshot(slot="test", version=SCHEMA_VERSION, snapshot_blob=b"junk"))
        session.commit()
    assert snapshot_store.read() is None
    assert GameStateStore(backend=snapshot_store).state.moves == 0


def test_unserializable_payload_not_written(snapshot_store: SnapshotStore):
    snapshot_store.write({"state": {"moves": object()}, "version": SCHEMA_VERSION})
    assert snapshot_store.read() is None
