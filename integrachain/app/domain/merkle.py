"""Hash-chain utilities for the audit log."""
from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional

# prev_hash of the first event; every later event links to a real chain hash
GENESIS_HASH = "00" * 32


def canonical_bytes(data: Mapping[str, Any]) -> bytes:
    """Serialize data with deterministic ordering for hashing and signing."""
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")


def compute_chain_hash(payload: Mapping[str, Any], prev_hash_hex: str) -> str:
    """Return sha256(canonical payload || previous chain hash) as hex."""
    return hashlib.sha256(canonical_bytes(payload) + bytes.fromhex(prev_hash_hex)).hexdigest()


def request_message(action: str, record_hash: str, note: Optional[str] = None) -> bytes:
    """Bytes a caller signs to authorise ``action`` on ``record_hash``."""
    body = {"action": action, "hash": record_hash}
    if note is not None:
        body["note"] = note
    return canonical_bytes(body)
