"""Tests for blind index digests."""

import hashlib
import hmac

import pytest

from app.services.blind_index import BlindIndex, compute, normalize
from app.services.keys import KeyMaterial


def test_case_and_whitespace_variants_share_a_digest(key_material):
    index = BlindIndex(key_material)
    assert index.compute("Foo@Bar.com") == index.compute("foo@bar.com")
    assert index.compute(" foo@bar.com ") == index.compute("foo@bar.com")
    assert index.compute("FOO@BAR.COM\n") == index.compute("foo@bar.com")


def test_different_values_have_different_digests(key_material):
    index = BlindIndex(key_material)
    assert index.compute("Foo") != index.compute("Foobar")


def test_digest_is_hmac_sha256_hex_of_normalized_value(key_material):
    expected = hmac.new(key_material.index_key, b"test@example.com", hashlib.sha256).hexdigest()
    digest = compute("  Test@Example.com", key_material.index_key)

    assert digest == expected
    assert len(digest) == 64


def test_digest_is_deterministic(key_material):
    assert BlindIndex(key_material).compute("a@example.com") == BlindIndex(key_material).compute("a@example.com")


@pytest.mark.parametrize("value", [None, "", "   ", "\t\n"])
def test_absent_values_have_no_digest(key_material, value):
    assert BlindIndex(key_material).compute(value) is None


def test_digest_depends_on_index_key(key_material):
    other = KeyMaterial(encryption_key=key_material.encryption_key, index_key=b"\x07" * 32)
    assert BlindIndex(key_material).compute("a@example.com") != BlindIndex(other).compute("a@example.com")


def test_digest_does_not_use_the_encryption_key(key_material):
    with_encryption_key = hmac.new(key_material.encryption_key, b"a@example.com", hashlib.sha256).hexdigest()
    assert BlindIndex(key_material).compute("a@example.com") != with_encryption_key


def test_no_unicode_compatibility_folding(key_material):
    # Full-width letters are not folded to ASCII; only case and whitespace are.
    index = BlindIndex(key_material)
    assert normalize(" ＦＯＯ ") == "ｆｏｏ"
    assert index.compute("ｆｏｏ") != index.compute("foo")
