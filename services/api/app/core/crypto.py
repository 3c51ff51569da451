"""
Symmetric encryption for third-party credentials at rest.

AES-256-GCM with a fresh 96-bit nonce per call. The stored token is
base64(nonce || ciphertext || tag), so a single opaque string round-trips
through the database.
"""
import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_LENGTH = 32
NONCE_LENGTH = 12
TAG_LENGTH = 16


class CipherError(Exception):
    """Base class for encryption failures."""


class InvalidKeyLength(CipherError):
    """Key shorter than 32 characters."""


class DecryptionFailure(CipherError):
    """Token is malformed or was not produced with this key."""


def _cipher(key: str) -> AESGCM:
    if key is None or len(key) < KEY_LENGTH:
        raise InvalidKeyLength("Encryption key must be at least 32 characters")
    # Only the first 32 bytes are key material
    return AESGCM(key.encode("utf-8")[:KEY_LENGTH])


def encrypt(plaintext: str, key: str) -> str:
    """Encrypt a string and return an opaque base64 token."""
    aesgcm = _cipher(key)
    nonce = os.urandom(NONCE_LENGTH)
    sealed = aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + sealed).decode("ascii")


def decrypt(token: str, key: str) -> str:
    """Decrypt a token produced by encrypt() with the same key."""
    aesgcm = _cipher(key)
    try:
        raw = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError, TypeError) as exc:
        raise DecryptionFailure("Encrypted token is not valid base64") from exc

    if len(raw) < NONCE_LENGTH + TAG_LENGTH:
        raise DecryptionFailure("Encrypted token is too short")

    nonce, sealed = raw[:NONCE_LENGTH], raw[NONCE_LENGTH:]
    try:
        plaintext = aesgcm.decrypt(nonce, sealed, None)
    except InvalidTag as exc:
        raise DecryptionFailure("Authentication tag mismatch") from exc

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecryptionFailure("Decrypted payload is not UTF-8") from exc
