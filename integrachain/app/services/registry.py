"""The hash registry state machine.

Each hash moves through ``ABSENT -> ACTIVE -> REVOKED`` and never back.
Mutations are serialised by a single writer lock; the precondition checks,
the row write, the audit event and the commit all happen while it is held.
Database constraints (primary key on ``hash``, conditional update on
``revoked``, unique ``prev_hash`` on audit events) reject the same conflicts
for writers in other processes.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ..domain.errors import (
    AlreadyRegistered,
    AlreadyRevoked,
    LedgerConflict,
    NoteTooLong,
    NotOwner,
    NotRegistered,
    RegistryError,
    ZeroHash,
)
from ..domain.hashing import HashLike, is_zero_hash, normalize_hash
from ..domain.identity import ZERO_ADDRESS, same_identity
from ..domain.models import (
    MAX_NOTE_LENGTH,
    EventKind,
    HashRecord,
    RecordView,
    RegistryEventRead,
)
from ..infra.db import session_scope
from ..infra.logger import get_logger
from .ledger import EventLog, replay

log = get_logger(__name__)

_WRITE_LOCK = threading.Lock()


def _now() -> int:
    return int(time.time())


class Registry:
    """Authoritative mapping from content hash to :class:`RecordView`."""

    def __init__(
        self,
        engine: Optional[Engine] = None,
        clock: Optional[Callable[[], int]] = None,
        lock: Optional[threading.Lock] = None,
    ) -> None:
        self.engine = engine
        self.clock = clock or _now
        self._lock = lock or _WRITE_LOCK

    def register(self, record_hash: HashLike, note: str, caller: str) -> RecordView:
        key = normalize_hash(record_hash)
        owner = _normalize_caller(caller)
        if is_zero_hash(key):
            _reject(ZeroHash(key, "zero hash is not a valid key"), "register", owner)

        with self._lock:
            try:
                with session_scope(self.engine) as session:
                    if session.get(HashRecord, key) is not None:
                        _reject(AlreadyRegistered(key, "hash already registered"), "register", owner)
                    if len(note) > MAX_NOTE_LENGTH:
                        _reject(
                            NoteTooLong(key, f"note exceeds {MAX_NOTE_LENGTH} characters"),
                            "register",
                            owner,
                        )

                    timestamp = self.clock()
                    record = HashRecord(hash=key, owner=owner, timestamp=timestamp, note=note)
                    session.add(record)
                    session.flush()
                    event = EventLog(session).append(EventKind.REGISTERED, owner, key, timestamp, note)
                    view = RecordView.model_validate(record)
                    seq = event.seq
            except IntegrityError as exc:
                # lost a race against a writer in another process
                if self._stored(key):
                    _reject(AlreadyRegistered(key, "hash already registered"), "register", owner, cause=exc)
                _conflict("register", key, owner, exc)

        log.info("registered hash=%s owner=%s seq=%s", key, owner, seq)
        return view

    def revoke(self, record_hash: HashLike, caller: str) -> RecordView:
        key = normalize_hash(record_hash)
        owner = _normalize_caller(caller)
        if is_zero_hash(key):
            _reject(ZeroHash(key, "zero hash is not a valid key"), "revoke", owner)

        with self._lock:
            try:
                with session_scope(self.engine) as session:
                    record = session.get(HashRecord, key)
                    if record is None:
                        _reject(NotRegistered(key, "hash not registered"), "revoke", owner)
                    if not same_identity(record.owner, owner):
                        _reject(NotOwner(key, "caller is not the record owner"), "revoke", owner)
                    if record.revoked:
                        _reject(AlreadyRevoked(key, "record already revoked"), "revoke", owner)

                    view = RecordView.model_validate(record).model_copy(update={"revoked": True})
                    result = session.execute(
                        update(HashRecord)
                        .where(HashRecord.hash == key, HashRecord.revoked == False)  # noqa: E712
                        .values(revoked=True)
                    )
                    if result.rowcount != 1:
                        _reject(AlreadyRevoked(key, "record already revoked"), "revoke", owner)

                    event = EventLog(session).append(EventKind.REVOKED, view.owner, key, self.clock())
                    seq = event.seq
            except IntegrityError as exc:
                _conflict("revoke", key, owner, exc)

        log.info("revoked hash=%s owner=%s seq=%s", key, owner, seq)
        return view

    def get_record(self, record_hash: HashLike) -> RecordView:
        key = normalize_hash(record_hash)
        if is_zero_hash(key):
            return RecordView.empty(key)
        with session_scope(self.engine) as session:
            record = session.get(HashRecord, key)
            if record is None:
                return RecordView.empty(key)
            return RecordView.model_validate(record)

    def is_registered(self, record_hash: HashLike) -> bool:
        return self.get_record(record_hash).exists

    def _stored(self, key: str) -> bool:
        with session_scope(self.engine) as session:
            return session.get(HashRecord, key) is not None

    def scan_events(
        self,
        kind: Optional[EventKind] = None,
        owner: Optional[str] = None,
        record_hash: Optional[HashLike] = None,
        since_seq: int = 0,
        limit: int = 100,
    ) -> List[RegistryEventRead]:
        key = normalize_hash(record_hash) if record_hash else None
        with session_scope(self.engine) as session:
            events = EventLog(session).scan(kind, owner, key, since_seq, limit)
            return [RegistryEventRead.model_validate(event) for event in events]

    def recent_registrations(self, limit: int = 10) -> List[RegistryEventRead]:
        with session_scope(self.engine) as session:
            events = EventLog(session).recent_registrations(limit)
            return [RegistryEventRead.model_validate(event) for event in events]

    def verify_chain(self) -> dict:
        with session_scope(self.engine) as session:
            return EventLog(session).verify_chain()

    def check_consistency(self) -> dict:
        """Compare the materialised table with a replay of the audit log."""
        with session_scope(self.engine) as session:
            projected = {key: view.model_dump() for key, view in replay(EventLog(session).all()).items()}
            stored = {
                row.hash: RecordView.model_validate(row).model_dump()
                for row in session.exec(select(HashRecord)).all()
            }

        mismatches = sorted(
            key
            for key in projected.keys() | stored.keys()
            if projected.get(key) != stored.get(key)
        )
        return {"ok": not mismatches, "records": len(stored), "mismatches": mismatches}


def _normalize_caller(caller: str) -> str:
    if not caller or same_identity(caller, ZERO_ADDRESS):
        raise ValueError("caller identity is required")
    return caller.lower()


def _reject(exc: RegistryError, action: str, caller: str, cause: Exception | None = None) -> None:
    log.warning("%s rejected kind=%s hash=%s caller=%s", action, exc.kind.value, exc.record_hash, caller)
    raise exc from cause


def _conflict(action: str, key: str, caller: str, cause: Exception) -> None:
    log.warning("%s rolled back, audit log head moved hash=%s caller=%s", action, key, caller)
    raise LedgerConflict(f"{action} of {key} lost a race for the audit log head") from cause
