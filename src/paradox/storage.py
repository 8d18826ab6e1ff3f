"""Best-effort snapshot persistence backed by SQLModel.

Read and write failures are logged and swallowed: the game keeps running on
its in-memory state whatever happens to the database.
"""

import datetime as dt
import json
import zlib
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .logging import get_logger
from .models import SavedSnapshot

logger = get_logger(__name__)


def encode_snapshot(payload: dict[str, Any]) -> bytes:
    return zlib.compress(json.dumps(payload).encode("utf-8"))


def decode_snapshot(blob: bytes) -> dict[str, Any]:
    payload = json.loads(zlib.decompress(blob).decode("utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("snapshot is not an object")
    return payload


class SnapshotStore:
    """Reads and writes the versioned snapshot for one save slot."""

    def __init__(self, engine: Engine, slot: str = "default"):
        self.engine = engine
        self.slot = slot

    def _find(self, session: Session) -> SavedSnapshot | None:
        statement = select(SavedSnapshot).where(SavedSnapshot.slot == self.slot)
        return session.exec(statement).first()

    def write(self, payload: dict[str, Any]) -> None:
        state = payload.get("state", {})
        try:
            blob = encode_snapshot(payload)
            with Session(self.engine) as session:
                saved = self._find(session)
                if saved is None:
                    saved = SavedSnapshot(
                        slot=self.slot,
                        version=payload["version"],
                        snapshot_blob=blob,
                    )
                    session.add(saved)
                saved.version = payload["version"]
                saved.snapshot_blob = blob
                saved.moves = state.get("moves", 0)
                saved.corruption = state.get("corruption", 0)
                saved.saved_at = dt.datetime.now(dt.UTC)
                session.commit()
        except (SQLAlchemyError, OSError, TypeError, ValueError) as exc:
            logger.error("snapshot_write_failed", slot=self.slot, error=str(exc))
            return
        logger.debug("snapshot_saved", slot=self.slot, moves=state.get("moves", 0))

    def read(self) -> dict[str, Any] | None:
        try:
            with Session(self.engine) as session:
                saved = self._find(session)
                if saved is None:
                    return None
                return decode_snapshot(saved.snapshot_blob)
        except (SQLAlchemyError, OSError, zlib.error, ValueError) as exc:
            logger.error("snapshot_read_failed", slot=self.slot, error=str(exc))
            return None

