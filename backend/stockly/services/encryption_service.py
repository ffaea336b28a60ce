# Overview: Password-based authenticated encryption for backup files.

"""
Backup encryption

Encrypted backup layout (all binary, no framing):

    salt (16 bytes) || nonce (16 bytes) || AES-256-GCM ciphertext || tag (16 bytes)

The key is derived per file from the password and the random salt with
PBKDF2-HMAC-SHA256 (100,000 iterations, 32-byte key). The iteration count
is part of the file format: changing it makes existing backups unreadable.

Any failure to open a blob (wrong password, truncation, tampering) raises
DecryptionFailed with one generic message.
"""

from __future__ import annotations

import hashlib
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .backup_errors import DecryptionFailed, EncryptionFailed, KeyDerivationFailed

logger = logging.getLogger(__name__)

SALT_LENGTH = 16
NONCE_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
PBKDF2_ITERATIONS = 100_000

HEADER_LENGTH = SALT_LENGTH + NONCE_LENGTH


def derive_key(password: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    """
    Derive a 256-bit AES key from a password.

    Raises KeyDerivationFailed for a password that is not text (or cannot be
    UTF-8 encoded), an empty salt, or a non-positive iteration count.
    """
    if not isinstance(password, str):
        raise KeyDerivationFailed("password must be a string")
    if not isinstance(salt, (bytes, bytearray)) or not salt:
        raise KeyDerivationFailed("salt must be non-empty bytes")
    if iterations < 1:
        raise KeyDerivationFailed("iteration count must be positive")
    try:
        secret = password.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise KeyDerivationFailed("password is not valid UTF-8") from exc
    return hashlib.pbkdf2_hmac("sha256", secret, bytes(salt), iterations, dklen=KEY_LENGTH)


def encrypt(plaintext: bytes, password: str) -> bytes:
    if not isinstance(plaintext, (bytes, bytearray)):
        raise EncryptionFailed("plaintext must be bytes")

    salt = os.urandom(SALT_LENGTH)
    nonce = os.urandom(NONCE_LENGTH)
    key = derive_key(password, salt)

    try:
        sealed = AESGCM(key).encrypt(nonce, bytes(plaintext), None)
    except (ValueError, OverflowError) as exc:
        raise EncryptionFailed(str(exc)) from exc

    logger.debug("Encrypted %d bytes", len(plaintext))
    return salt + nonce + sealed


def decrypt(blob: bytes, password: str) -> bytes:
    if not isinstance(blob, (bytes, bytearray)) or len(blob) < HEADER_LENGTH + TAG_LENGTH:
        raise DecryptionFailed()

    blob = bytes(blob)
    salt = blob[:SALT_LENGTH]
    nonce = blob[SALT_LENGTH:HEADER_LENGTH]
    sealed = blob[HEADER_LENGTH:]
    key = derive_key(password, salt)

    try:
        return AESGCM(key).decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise DecryptionFailed() from exc
