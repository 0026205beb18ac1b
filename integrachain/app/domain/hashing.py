"""Content hashing and hash normalisation."""
from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Union

from .errors import InvalidHash

HASH_BYTES = 32
ZERO_HASH = "0x" + "00" * HASH_BYTES
CHUNK_SIZE = 1024 * 1024
_HEX_DIGEST = re.compile(r"[0-9a-fA-F]{64}")

HashLike = Union[str, bytes]


def compute_hash(data: bytes) -> str:
    """Return the registry key (0x-prefixed SHA-256 hex) for ``data``."""
    return "0x" + hashlib.sha256(data).hexdigest()


def hash_file(path: Union[str, Path]) -> str:
    hasher = hashlib.sha256()
    with open(path, "rb") as fh:
        for chunk in iter(lambda: fh.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return "0x" + hasher.hexdigest()


def normalize_hash(value: HashLike) -> str:
    """Return ``value`` as ``0x`` + 64 lowercase hex characters.

    Accepts raw 32-byte digests and hex strings with or without the ``0x``
    prefix. Anything else raises :class:`InvalidHash`.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != HASH_BYTES:
            raise InvalidHash(f"expected {HASH_BYTES} bytes, got {len(value)}")
        return "0x" + bytes(value).hex()

    clean = value.strip()
    if clean[:2] in ("0x", "0X"):
        clean = clean[2:]
    if len(clean) != HASH_BYTES * 2:
        raise InvalidHash("Invalid hash length. Expected 64 hex characters (32 bytes)")
    if not _HEX_DIGEST.fullmatch(clean):
        raise InvalidHash(f"not a hex string: {value!r}")
    return "0x" + clean.lower()


def is_zero_hash(value: str) -> bool:
    return value == ZERO_HASH


def truncate_hash(value: str, start: int = 10, end: int = 8) -> str:
    if len(value) <= start + end:
        return value
    return f"{value[:start]}...{value[-end:]}"
