"""Re-derive a content hash and check it against the registry."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..domain.hashing import compute_hash, hash_file, normalize_hash
from ..domain.identity import same_identity
from ..domain.models import RecordView
from .registry import Registry

CERTIFICATE_TITLE = "IntegraChain Verification Certificate"


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    REVOKED = "revoked"
    NOT_FOUND = "not_found"


@dataclass
class VerificationResult:
    hash: str
    status: VerificationStatus
    record: RecordView
    name: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == VerificationStatus.VERIFIED

    def certificate(self, verified_at: Optional[datetime] = None) -> Optional[Dict[str, str]]:
        """Printable proof that the content matched an active registration.

        Only verified results earn one; revoked and unknown content return None.
        """
        if not self.ok:
            return None
        verified_at = verified_at or datetime.now(timezone.utc)
        registered_at = datetime.fromtimestamp(self.record.timestamp, tz=timezone.utc)
        return {
            "title": CERTIFICATE_TITLE,
            "hash": self.hash,
            "file_name": self.name or "N/A",
            "owner": self.record.owner,
            "registered_at": registered_at.isoformat(),
            "verified_at": verified_at.isoformat(),
            "note": self.record.note or "N/A",
            "status": "VERIFIED - File Unchanged",
        }


class VerificationService:
    def __init__(self, registry: Registry) -> None:
        self.registry = registry

    def verify_hash(self, record_hash: str, name: Optional[str] = None) -> VerificationResult:
        record = self.registry.get_record(record_hash)
        if not record.exists:
            status = VerificationStatus.NOT_FOUND
        elif record.revoked:
            status = VerificationStatus.REVOKED
        else:
            status = VerificationStatus.VERIFIED
        return VerificationResult(hash=record.hash, status=status, record=record, name=name)

    def verify_bytes(self, data: bytes, name: Optional[str] = None) -> VerificationResult:
        return self.verify_hash(compute_hash(data), name=name)

    def verify_file(self, path: Union[str, Path]) -> VerificationResult:
        return self.verify_hash(hash_file(path), name=Path(path).name)

    def verify_many(self, paths: Iterable[Union[str, Path]]) -> List[VerificationResult]:
        return [self.verify_file(path) for path in paths]


def compare_hashes(a: str, b: str) -> bool:
    """True when two inputs name the same digest."""
    return normalize_hash(a) == normalize_hash(b)


def is_owner(record: RecordView, identity: str) -> bool:
    return record.exists and same_identity(record.owner, identity)
