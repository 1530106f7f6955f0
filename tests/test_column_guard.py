"""Tests for the column guard and field registry."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import Column, Integer, Text
from sqlalchemy.orm import DeclarativeBase

from app.models.audit import AuditLog
from app.models.encryptable import Encryptable
from app.models.patient import Patient
from app.models.registry import FieldRegistry, FieldSpec
from app.models.staff import Staff
from app.services.column_guard import assert_registered
from app.services.errors import ConfigurationError

REJECTED_NAMES = [
    "name; DROP TABLE users",
    "not_a_real_field",
    "email_bidx",
    "email' OR '1'='1",
    "EMAIL",
    "",
    None,
    42,
]


def test_searchable_field_resolves_to_its_digest_column():
    assert assert_registered("email", Patient) == "email_bidx"
    assert assert_registered("email", Staff) == "email_bidx"


@pytest.mark.parametrize("field_name", REJECTED_NAMES)
def test_unregistered_names_are_rejected(field_name):
    with pytest.raises(ConfigurationError):
        assert_registered(field_name, Patient)


def test_registered_but_unsearchable_field_is_rejected():
    with pytest.raises(ConfigurationError):
        assert_registered("name", Patient)


def test_record_type_without_registry_is_rejected():
    with pytest.raises(ConfigurationError):
        assert_registered("email", AuditLog)


def test_rejection_is_uniform_and_does_not_echo_the_name():
    messages = set()
    for field_name in ["name; DROP TABLE users", "not_a_real_field", "name"]:
        with pytest.raises(ConfigurationError) as exc_info:
            assert_registered(field_name, Patient)
        messages.add(str(exc_info.value))

    assert len(messages) == 1
    assert "DROP" not in messages.pop()


@pytest.mark.parametrize("field_name", ["name; DROP TABLE users", "not_a_real_field"])
def test_rejected_lookup_issues_no_query(crypto, field_name):
    db = MagicMock()
    with pytest.raises(ConfigurationError):
        Patient.find_by_field(db, crypto, field_name, "x")
    with pytest.raises(ConfigurationError):
        Patient.find_by_field_or_raise(db, crypto, field_name, "x")

    db.execute.assert_not_called()
    db.query.assert_not_called()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def test_field_spec_naming_convention():
    spec = FieldSpec.encrypted("email", searchable=True, unique=True)
    assert spec.columns == ("email_encrypted", "email_encrypted_iv", "email_bidx")
    assert spec.searchable

    plain = FieldSpec.encrypted("birth_date")
    assert plain.digest_column is None
    assert not plain.searchable


def test_uniqueness_requires_a_blind_index():
    with pytest.raises(ValueError):
        FieldSpec.encrypted("name", unique=True)


def test_duplicate_field_names_are_rejected():
    with pytest.raises(ValueError, match="Duplicate"):
        FieldRegistry(FieldSpec.encrypted("email"), FieldSpec.encrypted("email", searchable=True))


def test_registry_is_read_only():
    registry = Patient.__encrypted_fields__
    assert [spec.name for spec in registry.searchable()] == ["email"]
    assert "email" in registry
    assert 42 not in registry
    with pytest.raises(TypeError):
        registry._fields["phone"] = FieldSpec.encrypted("phone")


def test_registry_naming_missing_columns_fails_at_declaration():
    class _Base(DeclarativeBase):
        pass

    with pytest.raises(ValueError, match="missing columns"):

        class Broken(Encryptable, _Base):
            __tablename__ = "broken"
            __encrypted_fields__ = FieldRegistry(FieldSpec.encrypted("email", searchable=True))

            id = Column(Integer, primary_key=True)
            email_encrypted = Column(Text)
            email_encrypted_iv = Column(Text)


def test_required_fields_are_declared_per_record_type():
    assert Patient.__encrypted_fields__.get("email").required
    assert not Patient.__encrypted_fields__.get("name").required
    assert Staff.__encrypted_fields__.get("name").required
    assert not Staff.__encrypted_fields__.get("email").required
