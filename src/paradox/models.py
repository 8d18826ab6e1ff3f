"""Database models for Terminal Paradox."""

import datetime as dt

from sqlmodel import Field, SQLModel


class SavedSnapshot(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    slot: str = Field(unique=True, index=True)
    version: str
    snapshot_blob: bytes  # zlib-compressed JSON of {state, timestamp, version}
    moves: int = 0
    corruption: int = 0
    saved_at: dt.datetime = Field(
        default_factory=lambda: dt.datetime.now(dt.UTC)
    )
