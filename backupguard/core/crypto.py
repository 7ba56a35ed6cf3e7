"""AES-256-GCM encryption and PBKDF2 key derivation logic."""

from __future__ import annotations

import asyncio
import base64
import logging
import os
import secrets

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..common.constants import (
    DEFAULT_PASSWORD_LENGTH,
    IV_SIZE,
    KDF_ITERATIONS,
    KEY_SIZE,
    PASSWORD_ALPHABET,
    SALT_SIZE,
)
from ..common.types import EncryptedBlob
from ..utils import EncryptionError

logger = logging.getLogger(__name__)

DECRYPTION_FAILED = "Decryption failed. Wrong password or corrupted data."


def derive_encryption_key(password: str, salt: bytes) -> bytes:
    """
    Derive a 256-bit encryption key from password using PBKDF2.

    Args:
        password: User password string
        salt: Random salt (16 bytes for new blobs)

    Returns:
        32-byte encryption key
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


def _b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _b64decode(data: str) -> bytes:
    return base64.b64decode(data.encode("ascii"), validate=True)


def _encrypt(data: str, password: str) -> EncryptedBlob:
    salt = os.urandom(SALT_SIZE)
    iv = os.urandom(IV_SIZE)
    key = derive_encryption_key(password, salt)
    ciphertext = AESGCM(key).encrypt(iv, data.encode("utf-8"), None)
    return EncryptedBlob(
        ciphertext=_b64encode(ciphertext),
        salt=_b64encode(salt),
        iv=_b64encode(iv),
    )


def _decrypt(ciphertext: str, password: str, salt: str, iv: str) -> str:
    salt_bytes = _b64decode(salt)
    iv_bytes = _b64decode(iv)
    ciphertext_bytes = _b64decode(ciphertext)
    key = derive_encryption_key(password, salt_bytes)
    plaintext = AESGCM(key).decrypt(iv_bytes, ciphertext_bytes, None)
    return plaintext.decode("utf-8")


async def encrypt_data(data: str, password: str) -> EncryptedBlob:
    """
    Encrypt text using AES-256-GCM with a password-derived key.

    A fresh salt and IV are drawn for every call, so encrypting the same
    text twice never yields the same blob.

    Args:
        data: Text to encrypt
        password: User password

    Returns:
        Base64-encoded ciphertext (tag included), salt and IV

    Raises:
        EncryptionError: If the cipher or the random source fails
    """
    try:
        blob = await asyncio.to_thread(_encrypt, data, password)
    except Exception as exc:
        raise EncryptionError(f"Encryption failed: {exc}") from exc
    logger.debug("Encrypted %d characters.", len(data))
    return blob


async def decrypt_data(ciphertext: str, password: str, salt: str, iv: str) -> str:
    """
    Decrypt AES-256-GCM encrypted text.

    Args:
        ciphertext: Base64 ciphertext including the authentication tag
        password: User password
        salt: Base64 salt used at encryption time
        iv: Base64 IV used at encryption time

    Returns:
        Decrypted text

    Raises:
        EncryptionError: If the password is wrong or any field is corrupted.
            Both cases carry the same message.
    """
    try:
        return await asyncio.to_thread(_decrypt, ciphertext, password, salt, iv)
    except Exception as exc:
        raise EncryptionError(DECRYPTION_FAILED) from exc


async def decrypt_blob(blob: EncryptedBlob, password: str) -> str:
    """Decrypt an ``EncryptedBlob`` produced by ``encrypt_data``."""
    return await decrypt_data(blob.ciphertext, password, blob.salt, blob.iv)


def generate_secure_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """
    Generate a random password from the fixed 70-symbol alphabet.

    Args:
        length: Number of characters

    Returns:
        Password string
    """
    if length < 0:
        raise ValueError("Password length must be non-negative.")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
