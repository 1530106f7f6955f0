"""
Application-layer encryption for PII fields.

Demonstrates:
- Authenticated symmetric encryption (AES-256-GCM) for data at rest
- A fresh random 96-bit IV on every write; callers can never supply one
- Tamper detection surfaced as IntegrityError instead of garbage plaintext
"""

from __future__ import annotations

import base64
import binascii
import os
from dataclasses import dataclass
from typing import NamedTuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from app.services.blind_index import BlindIndex
from app.services.errors import IntegrityError
from app.services.keys import KeyMaterial

IV_BYTES = 12


class EncryptedValue(NamedTuple):
    """Base64-encoded ciphertext (with GCM tag) and its IV."""

    ciphertext: str
    iv: str


def _b64decode(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)


def encrypt(plaintext: str, encryption_key: bytes) -> EncryptedValue:
    """Encrypt one value under *encryption_key* with a newly generated IV."""
    iv = os.urandom(IV_BYTES)
    ciphertext = AESGCM(encryption_key).encrypt(iv, plaintext.encode("utf-8"), None)
    return EncryptedValue(
        ciphertext=base64.b64encode(ciphertext).decode("ascii"),
        iv=base64.b64encode(iv).decode("ascii"),
    )


def decrypt(ciphertext: str, iv: str, encryption_key: bytes) -> str:
    """
    Decrypt one value. Any failure to authenticate (wrong key, flipped byte,
    truncated or malformed input) raises IntegrityError and must not be retried.
    """
    try:
        raw_iv = _b64decode(iv)
        raw_ciphertext = _b64decode(ciphertext)
        if len(raw_iv) != IV_BYTES:
            raise ValueError("bad IV length")
        plaintext = AESGCM(encryption_key).decrypt(raw_iv, raw_ciphertext, None)
        return plaintext.decode("utf-8")
    except (InvalidTag, binascii.Error, ValueError, UnicodeDecodeError):
        raise IntegrityError() from None


class FieldCipher:
    """Wraps AES-GCM encryption for PII fields under the process encryption key."""

    def __init__(self, key_material: KeyMaterial):
        self._key = key_material.encryption_key

    def encrypt(self, plaintext: str) -> EncryptedValue:
        return encrypt(plaintext, self._key)

    def decrypt(self, ciphertext: str, iv: str) -> str:
        return decrypt(ciphertext, iv, self._key)


@dataclass(frozen=True)
class FieldCrypto:
    """Cipher and blind index built once from the same KeyMaterial."""

    cipher: FieldCipher
    index: BlindIndex

    @classmethod
    def from_keys(cls, key_material: KeyMaterial) -> FieldCrypto:
        return cls(cipher=FieldCipher(key_material), index=BlindIndex(key_material))
