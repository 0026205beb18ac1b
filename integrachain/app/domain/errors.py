"""Registry failure kinds.

Every rejected operation raises a subclass of :class:`RegistryError` whose
``kind`` is one of :class:`RegistryErrorKind`. Callers match on the class or
on ``kind``; the message text is for humans only.
"""
from __future__ import annotations

from enum import Enum


class RegistryErrorKind(str, Enum):
    ZERO_HASH = "zero_hash"
    ALREADY_REGISTERED = "already_registered"
    NOTE_TOO_LONG = "note_too_long"
    NOT_REGISTERED = "not_registered"
    NOT_OWNER = "not_owner"
    ALREADY_REVOKED = "already_revoked"


class RegistryError(Exception):
    """Base class for precondition violations detected by the registry."""

    kind: RegistryErrorKind

    def __init__(self, record_hash: str, message: str | None = None) -> None:
        self.record_hash = record_hash
        super().__init__(message or f"{self.kind.value}: {record_hash}")

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "hash": self.record_hash, "message": str(self)}


class ZeroHash(RegistryError):
    kind = RegistryErrorKind.ZERO_HASH


class AlreadyRegistered(RegistryError):
    kind = RegistryErrorKind.ALREADY_REGISTERED


class NoteTooLong(RegistryError):
    kind = RegistryErrorKind.NOTE_TOO_LONG


class NotRegistered(RegistryError):
    kind = RegistryErrorKind.NOT_REGISTERED


class NotOwner(RegistryError):
    kind = RegistryErrorKind.NOT_OWNER


class AlreadyRevoked(RegistryError):
    kind = RegistryErrorKind.ALREADY_REVOKED


class InvalidHash(ValueError):
    """Raised for input that is not a 32-byte hash at all."""


class LedgerConflict(RuntimeError):
    """Another writer extended the audit log first; the operation was rolled back.

    Not a precondition violation: resubmitting re-evaluates every check.
    """
