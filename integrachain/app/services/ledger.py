"""Append-only audit log of registry state transitions."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from sqlmodel import Session, select

from ..domain.merkle import GENESIS_HASH, compute_chain_hash
from ..domain.models import EventKind, RecordView, RegistryEvent

MAX_SCAN = 1000


class ReplayError(ValueError):
    """The event stream describes a transition the state machine forbids."""


class EventLog:
    """Hash-chained event table. Rows are only ever inserted."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def append(
        self,
        kind: EventKind,
        owner: str,
        record_hash: str,
        timestamp: int,
        note: Optional[str] = None,
    ) -> RegistryEvent:
        prev_hash = self._latest_hash()
        event = RegistryEvent(
            kind=kind,
            owner=owner,
            hash=record_hash,
            timestamp=timestamp,
            note=note,
            prev_hash=prev_hash,
            curr_hash="",
        )
        event.curr_hash = compute_chain_hash(event.chain_material(), prev_hash)

        self.session.add(event)
        self.session.flush()
        self.session.refresh(event)
        return event

    def scan(
        self,
        kind: Optional[EventKind] = None,
        owner: Optional[str] = None,
        record_hash: Optional[str] = None,
        since_seq: int = 0,
        limit: int = 100,
    ) -> List[RegistryEvent]:
        """Return events with ``seq > since_seq`` in commit order."""
        stmt = (
            select(RegistryEvent)
            .where(RegistryEvent.seq > since_seq)
            .order_by(RegistryEvent.seq.asc())
            .limit(_clamp(limit))
        )
        if kind is not None:
            stmt = stmt.where(RegistryEvent.kind == kind)
        if owner:
            stmt = stmt.where(RegistryEvent.owner == owner.lower())
        if record_hash:
            stmt = stmt.where(RegistryEvent.hash == record_hash)
        return list(self.session.exec(stmt).all())

    def recent_registrations(self, limit: int = 10) -> List[RegistryEvent]:
        stmt = (
            select(RegistryEvent)
            .where(RegistryEvent.kind == EventKind.REGISTERED)
            .order_by(RegistryEvent.seq.desc())
            .limit(_clamp(limit))
        )
        return list(self.session.exec(stmt).all())

    def all(self) -> List[RegistryEvent]:
        return list(self.session.exec(select(RegistryEvent).order_by(RegistryEvent.seq.asc())).all())

    def verify_chain(self) -> dict:
        """Recompute every chain hash and check the links between rows."""
        problems: List[str] = []
        prev = GENESIS_HASH
        events = self.all()
        for event in events:
            if event.prev_hash != prev:
                problems.append(f"event[{event.seq}].prev_hash mismatch")
            expected = compute_chain_hash(event.chain_material(), prev)
            if event.curr_hash != expected:
                problems.append(f"event[{event.seq}].curr_hash mismatch")
            prev = event.curr_hash
        return {"ok": not problems, "events": len(events), "head": prev, "problems": problems}

    def _latest_hash(self) -> str:
        stmt = select(RegistryEvent.curr_hash).order_by(RegistryEvent.seq.desc()).limit(1)
        return self.session.exec(stmt).first() or GENESIS_HASH


def _clamp(limit: int) -> int:
    return max(0, min(limit, MAX_SCAN))


def replay(events: Iterable[RegistryEvent]) -> Dict[str, RecordView]:
    """Fold an ordered event stream into the per-hash record views it implies."""
    views: Dict[str, RecordView] = {}
    for event in events:
        current = views.get(event.hash)
        if event.kind == EventKind.REGISTERED:
            if current is not None:
                raise ReplayError(f"event[{event.seq}] registers {event.hash} twice")
            views[event.hash] = RecordView(
                hash=event.hash,
                exists=True,
                owner=event.owner,
                timestamp=event.timestamp,
                note=event.note or "",
            )
        elif event.kind == EventKind.REVOKED:
            if current is None:
                raise ReplayError(f"event[{event.seq}] revokes unknown {event.hash}")
            if current.revoked:
                raise ReplayError(f"event[{event.seq}] revokes {event.hash} twice")
            if current.owner != event.owner:
                raise ReplayError(f"event[{event.seq}] revoked by non-owner")
            views[event.hash] = current.model_copy(update={"revoked": True})
    return views
