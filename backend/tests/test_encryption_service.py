# Overview: Pytest coverage for backup encryption (key derivation and AES-GCM blobs).

import os

import pytest

from stockly.services.backup_errors import DecryptionFailed, KeyDerivationFailed
from stockly.services.encryption_service import (
    HEADER_LENGTH,
    KEY_LENGTH,
    SALT_LENGTH,
    TAG_LENGTH,
    decrypt,
    derive_key,
    encrypt,
)


class TestDeriveKey:
    def test_key_is_32_bytes_and_deterministic(self):
        salt = b"\x01" * SALT_LENGTH
        first = derive_key("correct-horse", salt)
        second = derive_key("correct-horse", salt)
        assert len(first) == KEY_LENGTH
        assert first == second

    def test_salt_changes_key(self):
        assert derive_key("pw", b"\x01" * 16) != derive_key("pw", b"\x02" * 16)

    def test_empty_password_is_allowed(self):
        assert len(derive_key("", b"salt-salt-salt-s")) == KEY_LENGTH

    @pytest.mark.parametrize("password, salt, iterations", [
        (None, b"salt", 1000),
        (b"bytes", b"salt", 1000),
        ("pw", b"", 1000),
        ("pw", b"salt", 0),
        ("\ud800", b"salt", 1000),
    ])
    def test_rejects_unusable_input(self, password, salt, iterations):
        with pytest.raises(KeyDerivationFailed):
            derive_key(password, salt, iterations)


@pytest.mark.slow
class TestEncryptDecrypt:
    def test_round_trip_5kb_payload(self):
        payload = os.urandom(5 * 1024)
        blob = encrypt(payload, "correct-horse")

        assert len(blob) == HEADER_LENGTH + len(payload) + TAG_LENGTH
        assert decrypt(blob, "correct-horse") == payload

    def test_wrong_password_fails_generically(self):
        blob = encrypt(b"x" * 5120, "correct-horse")
        with pytest.raises(DecryptionFailed) as excinfo:
            decrypt(blob, "wrong-password")
        assert "password may be incorrect" in str(excinfo.value)

    def test_same_plaintext_gives_different_blobs(self):
        assert encrypt(b"same", "pw") != encrypt(b"same", "pw")

    def test_tampered_ciphertext_is_rejected(self):
        blob = bytearray(encrypt(b'{"version": 1}', "pw"))
        blob[HEADER_LENGTH] ^= 0x01
        with pytest.raises(DecryptionFailed):
            decrypt(bytes(blob), "pw")

    def test_tampered_salt_is_rejected(self):
        blob = bytearray(encrypt(b"data", "pw"))
        blob[0] ^= 0xFF
        with pytest.raises(DecryptionFailed):
            decrypt(bytes(blob), "pw")

    def test_empty_plaintext(self):
        blob = encrypt(b"", "pw")
        assert len(blob) == HEADER_LENGTH + TAG_LENGTH
        assert decrypt(blob, "pw") == b""


class TestDecryptShortInput:
    @pytest.mark.parametrize("blob", [b"", b"\x00" * (HEADER_LENGTH + TAG_LENGTH - 1), "not-bytes"])
    def test_short_or_wrong_type_fails(self, blob):
        with pytest.raises(DecryptionFailed):
            decrypt(blob, "pw")
