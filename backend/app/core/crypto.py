"""Helpers for encrypting chat message text at rest."""

from __future__ import annotations

import os
from typing import Optional

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from .config import settings

_AES_KEY: Optional[bytes] = None
_AES_KEY_SOURCE: Optional[str] = None

_IV_LEN = 16
_KEY_LEN = 32
_HKDF_INFO = b"movt-chat-message-text"


def derive_message_key(secret: str) -> bytes:
    """Stretch an arbitrary-length secret into a 32-byte AES-256 key."""

    hkdf = HKDF(algorithm=hashes.SHA256(), length=_KEY_LEN, salt=None, info=_HKDF_INFO)
    return hkdf.derive(secret.encode("utf-8"))


def _message_key() -> bytes:
    """Return the memoized key, re-deriving when the configured secret changes."""

    global _AES_KEY, _AES_KEY_SOURCE

    secret = settings.get_message_secret()
    if _AES_KEY is not None and _AES_KEY_SOURCE == secret:
        return _AES_KEY

    _AES_KEY = derive_message_key(secret)
    _AES_KEY_SOURCE = secret
    return _AES_KEY


def encrypt_message(plain: Optional[str]) -> Optional[str]:
    """
    Encrypt message text with AES-256-CBC and a fresh random IV.

    The stored form is ``<iv hex>:<ciphertext hex>``. Empty text and None are
    returned untouched.
    """

    if not plain:
        return plain

    iv = os.urandom(_IV_LEN)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plain.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(_message_key()), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}:{ciphertext.hex()}"


def decrypt_message(stored: Optional[str]) -> Optional[str]:
    """
    Decrypt a value produced by ``encrypt_message``.

    Anything that does not look like ``iv:ciphertext`` hex, or fails to
    decrypt, is returned as-is so legacy plaintext rows stay readable.
    """

    if not stored:
        return stored

    parts = stored.split(":")
    if len(parts) != 2:
        return stored

    try:
        iv = bytes.fromhex(parts[0])
        ciphertext = bytes.fromhex(parts[1])
    except ValueError:
        return stored

    if len(iv) != _IV_LEN or not ciphertext or len(ciphertext) % _IV_LEN:
        return stored

    try:
        decryptor = Cipher(algorithms.AES(_message_key()), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plain = unpadder.update(padded) + unpadder.finalize()
        return plain.decode("utf-8")
    except (ValueError, UnicodeDecodeError):
        return stored


__all__ = ["derive_message_key", "encrypt_message", "decrypt_message"]
