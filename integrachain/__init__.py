"""
IntegraChain: a file-integrity registry.

Clients hash a file locally, register the digest with a short note, and
later re-derive the digest to check it. Each hash is write-once and may be
revoked exactly once by the identity that registered it. Every state change
is appended to a hash-chained audit log from which the registry state can
be replayed.
"""

__all__ = [
    "AlreadyRegistered",
    "AlreadyRevoked",
    "LedgerConflict",
    "NoteTooLong",
    "NotOwner",
    "NotRegistered",
    "RecordView",
    "Registry",
    "RegistryError",
    "RegistryErrorKind",
    "ZeroHash",
    "compute_hash",
]

from .app.domain.errors import (
    AlreadyRegistered,
    AlreadyRevoked,
    LedgerConflict,
    NoteTooLong,
    NotOwner,
    NotRegistered,
    RegistryError,
    RegistryErrorKind,
    ZeroHash,
)
from .app.domain.hashing import compute_hash
from .app.domain.models import RecordView
from .app.services.registry import Registry

__version__ = "0.1.0"
