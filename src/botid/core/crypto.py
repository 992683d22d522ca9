"""Cryptographic operations using Ed25519.

Keys travel as hex-encoded DER: SPKI for public keys and PKCS8 for private
keys. Signatures are hex-encoded raw Ed25519 signatures.
"""

import time
from typing import Optional

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519

TIMESTAMP_WINDOW_SECONDS = 300


def generate_keypair() -> tuple[str, str]:
    """Generate a new Ed25519 keypair.

    Returns:
        Tuple of (public_key_hex, private_key_hex)
    """
    private_key = ed25519.Ed25519PrivateKey.generate()
    public_der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    private_der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return public_der.hex(), private_der.hex()


def private_key_from_hex(private_key_hex: str) -> ed25519.Ed25519PrivateKey:
    """Load a private key from hex-encoded PKCS8 DER.

    Raises:
        ValueError: If the key material is not a valid Ed25519 private key
    """
    key = serialization.load_der_private_key(
        bytes.fromhex(private_key_hex), password=None
    )
    if not isinstance(key, ed25519.Ed25519PrivateKey):
        raise ValueError("Private key is not an Ed25519 key")
    return key


def public_key_from_hex(public_key_hex: str) -> ed25519.Ed25519PublicKey:
    """Load a public key from hex-encoded SPKI DER.

    Raises:
        ValueError: If the key material is not a valid Ed25519 public key
    """
    key = serialization.load_der_public_key(bytes.fromhex(public_key_hex))
    if not isinstance(key, ed25519.Ed25519PublicKey):
        raise ValueError("Public key is not an Ed25519 key")
    return key


def public_key_from_private(private_key_hex: str) -> str:
    """Derive the hex SPKI public key for a hex PKCS8 private key."""
    private_key = private_key_from_hex(private_key_hex)
    return (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .hex()
    )


def sign(message: str, private_key_hex: str) -> str:
    """Sign a message with an Ed25519 private key.

    Args:
        message: Message to sign (UTF-8 encoded before signing)
        private_key_hex: Hex-encoded PKCS8 DER private key

    Returns:
        Hex-encoded signature (64 bytes)

    Raises:
        ValueError: If the private key cannot be loaded
    """
    private_key = private_key_from_hex(private_key_hex)
    return private_key.sign(message.encode("utf-8")).hex()


def verify(message: str, signature_hex: str, public_key_hex: str) -> bool:
    """Verify an Ed25519 signature.

    Args:
        message: Original message
        signature_hex: Hex-encoded signature
        public_key_hex: Hex-encoded SPKI DER public key

    Returns:
        True if signature is valid, False otherwise (including for any
        malformed input)
    """
    try:
        public_key = public_key_from_hex(public_key_hex)
        public_key.verify(bytes.fromhex(signature_hex), message.encode("utf-8"))
        return True
    except Exception:
        return False


def is_timestamp_valid(
    timestamp: int,
    now: Optional[int] = None,
    window: int = TIMESTAMP_WINDOW_SECONDS,
) -> bool:
    """Check a signed timestamp against the replay window (inclusive)."""
    if now is None:
        now = int(time.time())
    return abs(now - timestamp) <= window
