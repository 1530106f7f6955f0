"""
Key material for field encryption and blind indexing.

Two independent 256-bit keys are supplied hex encoded through configuration:

- PII_ENCRYPTION_KEY  – AES-256-GCM key used by the field cipher
- BLIND_INDEX_KEY     – HMAC-SHA256 key used by the blind index engine

Both are loaded once at startup. Anything wrong with them is fatal.
"""

from __future__ import annotations

import binascii
import logging
from dataclasses import dataclass, field

from app.config import settings
from app.services.errors import FatalConfigurationError

logger = logging.getLogger(__name__)

KEY_BYTES = 32


def _decode_hex_key(raw: str | None, env_name: str) -> bytes:
    if not raw:
        raise FatalConfigurationError(f"{env_name} must be set")
    try:
        key = binascii.unhexlify(raw.strip())
    except (binascii.Error, ValueError):
        raise FatalConfigurationError(f"{env_name} must be hex encoded") from None
    if len(key) != KEY_BYTES:
        raise FatalConfigurationError(
            f"{env_name} must be {KEY_BYTES * 2} hex characters ({KEY_BYTES} bytes)"
        )
    return key


@dataclass(frozen=True)
class KeyMaterial:
    """Immutable pair of secrets. The repr never shows key bytes."""

    encryption_key: bytes = field(repr=False)
    index_key: bytes = field(repr=False)

    def __post_init__(self):
        for name in ("encryption_key", "index_key"):
            value = getattr(self, name)
            if not isinstance(value, bytes) or len(value) != KEY_BYTES:
                raise FatalConfigurationError(f"{name} must be {KEY_BYTES} bytes")
        if self.encryption_key == self.index_key:
            raise FatalConfigurationError(
                "encryption and blind index keys must be different"
            )

    @classmethod
    def from_hex(cls, encryption_key_hex: str | None, index_key_hex: str | None) -> KeyMaterial:
        return cls(
            encryption_key=_decode_hex_key(encryption_key_hex, "PII_ENCRYPTION_KEY"),
            index_key=_decode_hex_key(index_key_hex, "BLIND_INDEX_KEY"),
        )


def load_key_material() -> KeyMaterial:
    """Build KeyMaterial from process configuration. Raises on any defect."""
    keys = KeyMaterial.from_hex(settings.PII_ENCRYPTION_KEY, settings.BLIND_INDEX_KEY)
    logger.info("PII key material loaded")
    return keys
