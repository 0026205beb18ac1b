"""Ed25519 helpers used to authenticate registry callers."""
from typing import Tuple

from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat


def generate_keypair() -> Tuple[bytes, bytes]:
    private_key = Ed25519PrivateKey.generate()
    return (
        private_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption()),
        private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw),
    )


def sign_message(private_bytes: bytes, message: bytes) -> bytes:
    return Ed25519PrivateKey.from_private_bytes(private_bytes).sign(message)


def verify_signature(public_bytes: bytes, message: bytes, signature: bytes) -> None:
    """Raise ``cryptography.exceptions.InvalidSignature`` on mismatch."""
    Ed25519PublicKey.from_public_bytes(public_bytes).verify(signature, message)
