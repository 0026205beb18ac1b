"""Domain models shared between API and persistence layers."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlmodel import Field as SQLField, SQLModel

from .identity import ZERO_ADDRESS

MAX_NOTE_LENGTH = 80


class EventKind(str, Enum):
    REGISTERED = "registered"
    REVOKED = "revoked"


class HashRecord(SQLModel, table=True):
    """Materialised registry state, one row per registered hash."""

    __tablename__ = "hash_records"

    hash: str = SQLField(primary_key=True, max_length=66)
    owner: str = SQLField(index=True, max_length=42)
    timestamp: int
    note: str = SQLField(default="", max_length=MAX_NOTE_LENGTH)
    exists: bool = SQLField(default=True)
    revoked: bool = SQLField(default=False, index=True)


class RegistryEvent(SQLModel, table=True):
    """Append-only audit log row. ``seq`` is the commit order."""

    __tablename__ = "registry_events"

    seq: Optional[int] = SQLField(default=None, primary_key=True)
    kind: EventKind = SQLField(index=True)
    owner: str = SQLField(index=True)
    hash: str = SQLField(index=True)
    timestamp: int
    note: Optional[str] = SQLField(default=None)
    # unique: two writers appending from the same head cannot both commit
    prev_hash: str = SQLField(unique=True)
    curr_hash: str = SQLField(index=True)

    def chain_material(self) -> dict:
        return {
            "kind": EventKind(self.kind).value,
            "owner": self.owner,
            "hash": self.hash,
            "timestamp": self.timestamp,
            "note": self.note,
        }


class RecordView(BaseModel):
    """Read-only projection of one hash's registration state."""

    hash: str
    exists: bool = False
    owner: str = ZERO_ADDRESS
    timestamp: int = 0
    note: str = ""
    revoked: bool = False

    model_config = ConfigDict(from_attributes=True, frozen=True)

    @classmethod
    def empty(cls, record_hash: str) -> "RecordView":
        return cls(hash=record_hash)

    @property
    def active(self) -> bool:
        return self.exists and not self.revoked


class RegistryEventRead(BaseModel):
    seq: int
    kind: EventKind
    owner: str
    hash: str
    timestamp: int
    note: Optional[str]
    prev_hash: str
    curr_hash: str

    model_config = ConfigDict(from_attributes=True)
