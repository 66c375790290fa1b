"""Tests for the session token cipher."""

from __future__ import annotations

import base64

import pytest

from getpi.crypto import (
    NONCE_SIZE,
    TokenCipher,
    decrypt,
    encrypt,
    generate_key,
)
from getpi.exceptions import AuthenticationFailure, InvalidKey


class TestRoundTrip:
    """encrypt/decrypt agree with each other."""

    @pytest.mark.parametrize("plaintext", ["", "token", "ünïcødé ✓", "x" * 4096])
    def test_roundtrip(self, encryption_key: str, plaintext: str) -> None:
        assert decrypt(encrypt(plaintext, encryption_key), encryption_key) == plaintext

    def test_fresh_nonce_per_call(self, encryption_key: str) -> None:
        """The same plaintext encrypts differently every time."""
        a = encrypt("same", encryption_key)
        b = encrypt("same", encryption_key)
        assert a != b
        assert base64.b64decode(a)[:NONCE_SIZE] != base64.b64decode(b)[:NONCE_SIZE]

    def test_output_is_base64_text(self, encryption_key: str) -> None:
        sealed = encrypt("abc", encryption_key)
        raw = base64.b64decode(sealed, validate=True)
        # nonce + ciphertext + 16-byte GCM tag
        assert len(raw) == NONCE_SIZE + 3 + 16


class TestKeyValidation:
    """Keys must be base64 and exactly 32 bytes."""

    @pytest.mark.parametrize("key", [None, "", "not base64!!", base64.b64encode(b"short").decode()])
    def test_encrypt_rejects_bad_key(self, key) -> None:
        with pytest.raises(InvalidKey):
            encrypt("abc", key)

    def test_decrypt_rejects_bad_key(self, encryption_key: str) -> None:
        sealed = encrypt("abc", encryption_key)
        with pytest.raises(InvalidKey):
            decrypt(sealed, base64.b64encode(b"k" * 16).decode())

    def test_generate_key_is_valid(self) -> None:
        key = generate_key()
        assert len(base64.b64decode(key)) == 32
        assert decrypt(encrypt("ok", key), key) == "ok"

    def test_generated_keys_differ(self) -> None:
        assert generate_key() != generate_key()


class TestTampering:
    """decrypt refuses anything it did not produce under the same key."""

    def test_wrong_key(self, encryption_key: str) -> None:
        sealed = encrypt("secret", encryption_key)
        with pytest.raises(AuthenticationFailure):
            decrypt(sealed, generate_key())

    def test_truncated_below_nonce(self, encryption_key: str) -> None:
        short = base64.b64encode(b"\x00" * (NONCE_SIZE - 1)).decode()
        with pytest.raises(AuthenticationFailure):
            decrypt(short, encryption_key)

    def test_every_flipped_byte_is_detected(self, encryption_key: str) -> None:
        raw = bytearray(base64.b64decode(encrypt("secret-token", encryption_key)))
        for i in range(len(raw)):
            tampered = bytearray(raw)
            tampered[i] ^= 0x01
            with pytest.raises(AuthenticationFailure):
                decrypt(base64.b64encode(bytes(tampered)).decode(), encryption_key)

    def test_not_base64(self, encryption_key: str) -> None:
        with pytest.raises(AuthenticationFailure):
            decrypt("%%%not-base64%%%", encryption_key)


class TestTokenCipher:
    def test_bound_key_roundtrip(self, cipher: TokenCipher) -> None:
        assert cipher.decrypt(cipher.encrypt("tok")) == "tok"

    def test_has_valid_key(self, encryption_key: str) -> None:
        assert TokenCipher(encryption_key).has_valid_key
        assert not TokenCipher(None).has_valid_key
        assert not TokenCipher("abc").has_valid_key

    def test_missing_key_fails_on_use(self) -> None:
        with pytest.raises(InvalidKey):
            TokenCipher(None).encrypt("tok")

    def test_repr_hides_key(self, encryption_key: str) -> None:
        assert encryption_key not in repr(TokenCipher(encryption_key))
