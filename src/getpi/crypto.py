"""
Token cipher — keeps the appliance session token encrypted in memory.

The token scraped from the login page is sealed with AES-256-GCM as soon
as it is read and only opened for the request that needs it. A fresh
random nonce is generated per call and prefixed to the ciphertext; the
whole thing travels as standard base64 text.

This is an in-memory obfuscation layer, not secret storage: anyone who
can read the process memory can read the key too.

Usage:
    key = generate_key()
    sealed = encrypt("abc123", key)
    assert decrypt(sealed, key) == "abc123"
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
from typing import Optional

from .exceptions import AuthenticationFailure, InvalidKey

logger = logging.getLogger("getpi.crypto")

KEY_SIZE = 32
NONCE_SIZE = 12


def _decode_key(key: Optional[str]) -> bytes:
    """Decode a base64 key and check it is 256 bits long.

    Args:
        key: Base64-encoded key material.

    Returns:
        The raw 32 key bytes.

    Raises:
        InvalidKey: If the key is missing, not base64, or the wrong size.
    """
    if not key:
        raise InvalidKey("encryption key is not set")
    try:
        raw = base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidKey(f"invalid base64 key: {exc}") from exc
    if len(raw) != KEY_SIZE:
        raise InvalidKey(f"key length must be {KEY_SIZE} bytes (256 bits), got {len(raw)}")
    return raw


def encrypt(plaintext: str, key: Optional[str]) -> str:
    """Encrypt a string with AES-256-GCM.

    Args:
        plaintext: Text to seal. May be empty.
        key: Base64-encoded 256-bit key.

    Returns:
        base64(nonce || ciphertext || tag).

    Raises:
        InvalidKey: If the key is unusable.
    """
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM

    raw_key = _decode_key(key)
    nonce = secrets.token_bytes(NONCE_SIZE)
    sealed = AESGCM(raw_key).encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(ciphertext: str, key: Optional[str]) -> str:
    """Decrypt a string produced by encrypt().

    Args:
        ciphertext: base64(nonce || ciphertext || tag).
        key: The key used for encryption.

    Returns:
        The original plaintext.

    Raises:
        InvalidKey: If the key is unusable.
        AuthenticationFailure: If the data was altered, truncated, or
            sealed under a different key.
    """
    from cryptography.exceptions import InvalidTag
    from cryptography.hazmat.primitives.ciphers.aead import AESGCM

    raw_key = _decode_key(key)
    try:
        data = base64.b64decode(ciphertext, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AuthenticationFailure(f"ciphertext is not valid base64: {exc}") from exc

    if len(data) < NONCE_SIZE:
        raise AuthenticationFailure("ciphertext too short")

    nonce, sealed = data[:NONCE_SIZE], data[NONCE_SIZE:]
    try:
        plain = AESGCM(raw_key).decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise AuthenticationFailure("ciphertext failed authentication") from exc
    return plain.decode("utf-8")


def generate_key() -> str:
    """Return a fresh base64-encoded 256-bit key."""
    return base64.b64encode(secrets.token_bytes(KEY_SIZE)).decode("ascii")


class TokenCipher:
    """Binds a key to encrypt/decrypt so callers never read it from the environment.

    The key is checked on every call rather than at construction, so a
    missing ENCRYPTION_KEY surfaces as a failed login for each host.

    Args:
        key: Base64-encoded 256-bit key, or None.
    """

    def __init__(self, key: Optional[str]) -> None:
        self._key = key

    @property
    def has_valid_key(self) -> bool:
        """True when the bound key decodes to 32 bytes."""
        try:
            _decode_key(self._key)
        except InvalidKey:
            return False
        return True

    def encrypt(self, plaintext: str) -> str:
        return encrypt(plaintext, self._key)

    def decrypt(self, ciphertext: str) -> str:
        return decrypt(ciphertext, self._key)

    def __repr__(self) -> str:
        return f"TokenCipher(key={'set' if self._key else 'unset'})"
