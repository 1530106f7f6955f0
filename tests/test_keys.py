"""Tests for key material loading."""

import pytest

from app.config import settings
from app.services.errors import FatalConfigurationError
from app.services.keys import KeyMaterial, load_key_material
from conftest import TEST_ENCRYPTION_KEY, TEST_INDEX_KEY


def test_from_hex_decodes_both_keys():
    keys = KeyMaterial.from_hex(TEST_ENCRYPTION_KEY, TEST_INDEX_KEY)
    assert keys.encryption_key == bytes.fromhex(TEST_ENCRYPTION_KEY)
    assert keys.index_key == bytes.fromhex(TEST_INDEX_KEY)


@pytest.mark.parametrize(
    "encryption_hex, index_hex",
    [
        ("", TEST_INDEX_KEY),  # missing
        (TEST_ENCRYPTION_KEY, None),  # missing
        (TEST_ENCRYPTION_KEY[:-2], TEST_INDEX_KEY),  # 31 bytes
        (TEST_ENCRYPTION_KEY + "00", TEST_INDEX_KEY),  # 33 bytes
        ("zz" * 32, TEST_INDEX_KEY),  # not hex
    ],
)
def test_malformed_keys_are_fatal(encryption_hex, index_hex):
    with pytest.raises(FatalConfigurationError):
        KeyMaterial.from_hex(encryption_hex, index_hex)


def test_same_key_for_both_purposes_is_rejected():
    with pytest.raises(FatalConfigurationError, match="must be different"):
        KeyMaterial.from_hex(TEST_ENCRYPTION_KEY, TEST_ENCRYPTION_KEY)


def test_repr_does_not_expose_keys():
    keys = KeyMaterial.from_hex(TEST_ENCRYPTION_KEY, TEST_INDEX_KEY)
    text = repr(keys)
    assert TEST_ENCRYPTION_KEY not in text
    assert "encryption_key" not in text


def test_key_material_is_immutable():
    keys = KeyMaterial.from_hex(TEST_ENCRYPTION_KEY, TEST_INDEX_KEY)
    with pytest.raises(AttributeError):
        keys.index_key = b"\x00" * 32


def test_load_key_material_reads_settings(monkeypatch):
    assert load_key_material() == KeyMaterial.from_hex(TEST_ENCRYPTION_KEY, TEST_INDEX_KEY)

    monkeypatch.setattr(settings, "BLIND_INDEX_KEY", "")
    with pytest.raises(FatalConfigurationError):
        load_key_material()
