"""Caller identities.

An identity is an address: ``0x`` followed by the last 20 bytes of the
SHA-256 digest of the caller's raw Ed25519 public key. Only the holder of the
matching private key can produce a signature that resolves to it.
"""
from __future__ import annotations

import base64
import binascii
import hashlib

from cryptography.exceptions import InvalidSignature

from .sign import verify_signature

ADDRESS_BYTES = 20
ZERO_ADDRESS = "0x" + "00" * ADDRESS_BYTES


class AuthenticationError(Exception):
    """The caller could not be identified from the supplied credentials."""


def address_from_public_key(public_bytes: bytes) -> str:
    return "0x" + hashlib.sha256(public_bytes).digest()[-ADDRESS_BYTES:].hex()


def same_identity(a: str, b: str) -> bool:
    return a.lower() == b.lower()


def truncate_address(address: str) -> str:
    if len(address) != 2 + ADDRESS_BYTES * 2:
        return address
    return f"{address[:6]}...{address[-4:]}"


def authenticate(public_key_hex: str, signature_b64: str, message: bytes) -> str:
    """Verify ``signature_b64`` over ``message`` and return the caller's address."""
    try:
        public_bytes = bytes.fromhex(public_key_hex.removeprefix("0x"))
    except ValueError as exc:
        raise AuthenticationError("Invalid public key encoding") from exc
    try:
        signature = base64.b64decode(signature_b64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AuthenticationError("Invalid signature encoding") from exc

    try:
        verify_signature(public_bytes, message, signature)
    except (InvalidSignature, ValueError) as exc:
        raise AuthenticationError("Signature verification failed") from exc

    return address_from_public_key(public_bytes)
