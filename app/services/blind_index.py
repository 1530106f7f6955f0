"""
Blind index engine – deterministic keyed digests for equality search.

Values are normalized before hashing by trimming surrounding whitespace and
lowercasing. Lookups are therefore case-insensitive: "Foo@Bar.com" and
"foo@bar.com" land in the same equivalence class. This is the intended
behaviour for email lookup, not a bug. No Unicode normalization (NFKC) is
applied, so full-width or differently composed accented variants remain
distinct.

The digest leaks equality by construction. It is keyed with BLIND_INDEX_KEY,
which is independent of the encryption key, so a leaked index never yields
plaintext.
"""

from __future__ import annotations

import hashlib
import hmac

from app.services.keys import KeyMaterial


def normalize(value: str) -> str:
    return value.strip().lower()


def compute(plaintext: str | None, index_key: bytes) -> str | None:
    """
    Return the hex HMAC-SHA256 of the normalized value, or None when there is
    nothing to index (None, empty or whitespace-only input).
    """
    if plaintext is None:
        return None
    normalized = normalize(plaintext)
    if not normalized:
        return None
    return hmac.new(index_key, normalized.encode("utf-8"), hashlib.sha256).hexdigest()


class BlindIndex:
    def __init__(self, key_material: KeyMaterial):
        self._key = key_material.index_key

    def compute(self, plaintext: str | None) -> str | None:
        return compute(plaintext, self._key)
