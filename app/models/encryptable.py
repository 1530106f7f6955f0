"""
Encrypted field manager – mixin for SQLAlchemy models holding PII.

Usage:
    class Patient(Encryptable, Base):
        __tablename__ = "patients"
        __encrypted_fields__ = FieldRegistry(
            FieldSpec.encrypted("email", searchable=True, unique=True),
            FieldSpec.encrypted("name"),
        )
        email_encrypted = Column(Text)
        email_encrypted_iv = Column(Text)
        email_bidx = Column(String(64), unique=True)
        ...

    patient.set_field("email", "a@example.com")
    patient.before_persist(crypto)        # part of the explicit save sequence
    Patient.find_by_field(db, crypto, "email", "A@example.com ")

Per field, the lifecycle is:
    Empty --set--> DirtyPlaintext --before_persist--> PersistedEncrypted
    PersistedEncrypted --set(blank)--> DirtyCleared --before_persist--> Empty

Plaintext only ever lives in the instance's in-memory state; the mapped
columns only ever see ciphertext, IV and digest.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from app.models.registry import FieldRegistry, FieldSpec
from app.services.column_guard import assert_registered
from app.services.encryption import EncryptedValue, FieldCrypto
from app.services.errors import (
    ConfigurationError,
    IntegrityError,
    InvariantViolation,
    MissingValueError,
    NotFoundError,
    UniquenessError,
)

logger = logging.getLogger(__name__)

_STATE_KEY = "_encrypted_field_state"
_MISS = object()


def _present(value: Any) -> bool:
    return value is not None and value != ""


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


@dataclass
class _FieldState:
    # field name -> value assigned since the last before_persist()
    pending: dict[str, str | None] = field(default_factory=dict)
    # field name -> (ciphertext it was decrypted from, plaintext)
    decrypted: dict[str, tuple[str | None, str | None]] = field(default_factory=dict)


class Encryptable:
    __encrypted_fields__ = FieldRegistry()

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        registry = cls.__dict__.get("__encrypted_fields__")
        table = getattr(cls, "__table__", None)
        if registry is not None and table is not None:
            registry.check_columns(set(table.c.keys()), cls.__name__)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _field_state(self) -> _FieldState:
        # Instances loaded by the ORM skip __init__, so create state lazily.
        state = self.__dict__.get(_STATE_KEY)
        if state is None:
            state = _FieldState()
            self.__dict__[_STATE_KEY] = state
        return state

    @classmethod
    def _spec(cls, field_name: object) -> FieldSpec:
        spec = cls.__encrypted_fields__.get(field_name)
        if spec is None:
            raise ConfigurationError()
        return spec

    def _stored(self, spec: FieldSpec) -> tuple[str | None, str | None, str | None]:
        digest = getattr(self, spec.digest_column) if spec.digest_column else None
        return getattr(self, spec.ciphertext_column), getattr(self, spec.iv_column), digest

    def _is_new(self) -> bool:
        return not sa_inspect(self).has_identity

    def _check_field(self, spec: FieldSpec) -> None:
        ciphertext, iv, digest = self._stored(spec)
        if _present(ciphertext) != _present(iv):
            raise InvariantViolation()
        if _present(digest) and not _present(ciphertext):
            raise InvariantViolation()

    def _decrypt_stored(self, spec: FieldSpec, crypto: FieldCrypto) -> str | None:
        """Plaintext currently held in the columns, served from cache when unchanged."""
        ciphertext, iv, _ = self._stored(spec)
        state = self._field_state()
        cached = state.decrypted.get(spec.name, _MISS)
        if cached is not _MISS and cached[0] == ciphertext:
            return cached[1]

        if not _present(ciphertext):
            value = None
        else:
            try:
                value = crypto.cipher.decrypt(ciphertext, iv)
            except IntegrityError:
                logger.error("Integrity check failed on encrypted field of %s", type(self).__name__)
                raise
        state.decrypted[spec.name] = (ciphertext, value)
        return value

    def _stored_differs(self, spec: FieldSpec, crypto: FieldCrypto, value: str) -> bool:
        # An unreadable old value never blocks a new write; only reads fail on it.
        ciphertext, iv, _ = self._stored(spec)
        cached = self._field_state().decrypted.get(spec.name, _MISS)
        if cached is not _MISS and cached[0] == ciphertext:
            return cached[1] != value
        try:
            return crypto.cipher.decrypt(ciphertext, iv) != value
        except IntegrityError:
            logger.warning("Overwriting unreadable encrypted field on %s", type(self).__name__)
            return True

    def _write(self, spec: FieldSpec, encrypted: EncryptedValue | None, digest: str | None) -> None:
        setattr(self, spec.ciphertext_column, encrypted.ciphertext if encrypted else None)
        setattr(self, spec.iv_column, encrypted.iv if encrypted else None)
        if spec.digest_column:
            setattr(self, spec.digest_column, digest)

    def _encrypt_into(self, spec: FieldSpec, value: str, crypto: FieldCrypto) -> None:
        # Everything is computed before any column is touched.
        encrypted = crypto.cipher.encrypt(value)
        digest = crypto.index.compute(value) if spec.searchable else None
        self._write(spec, encrypted, digest)
        self._field_state().decrypted[spec.name] = (encrypted.ciphertext, value)

    # ------------------------------------------------------------------
    # Consumer surface
    # ------------------------------------------------------------------

    def set_field(self, field_name: str, plaintext: str | None) -> None:
        """Assign a logical PII value. Nothing is encrypted until before_persist()."""
        spec = self._spec(field_name)
        if plaintext is not None and not isinstance(plaintext, str):
            raise TypeError("encrypted fields hold str values")
        self._field_state().pending[spec.name] = plaintext

    def get_field(self, field_name: str, crypto: FieldCrypto) -> str | None:
        """Return the plaintext of a field, decrypting on first access."""
        spec = self._spec(field_name)
        state = self._field_state()
        if spec.name in state.pending:
            value = state.pending[spec.name]
            return None if _is_blank(value) else value
        self._check_field(spec)
        return self._decrypt_stored(spec, crypto)

    def is_encrypted(self, field_name: str) -> bool:
        """True when ciphertext is stored for the field."""
        ciphertext, _, _ = self._stored(self._spec(field_name))
        return _present(ciphertext)

    def check_invariants(self) -> None:
        for spec in self.__encrypted_fields__:
            self._check_field(spec)

    def before_persist(self, crypto: FieldCrypto) -> None:
        """
        Bring ciphertext, IV and digest columns in line with the logical values.

        Must be called by the save sequence before validation and flush. Fields
        that were not assigned, and assigned values equal to what is already
        persisted, are left byte-for-byte untouched unless their digest is
        missing (legacy rows), in which case the field is rewritten.
        """
        is_new = self._is_new()
        state = self._field_state()
        rewritten = 0

        for spec in self.__encrypted_fields__:
            self._check_field(spec)
            ciphertext, _, digest = self._stored(spec)
            digest_missing = spec.searchable and _present(ciphertext) and not _present(digest)

            if spec.name in state.pending:
                value = state.pending[spec.name]
                if _is_blank(value):
                    self._write(spec, None, None)
                    state.decrypted[spec.name] = (None, None)
                elif (
                    is_new
                    or not _present(ciphertext)
                    or digest_missing
                    or self._stored_differs(spec, crypto, value)
                ):
                    self._encrypt_into(spec, value, crypto)
                    rewritten += 1
                del state.pending[spec.name]
            elif digest_missing:
                value = self._decrypt_stored(spec, crypto)
                self._encrypt_into(spec, value, crypto)
                rewritten += 1

        if rewritten:
            logger.debug("Re-encrypted %d field(s) on %s", rewritten, type(self).__name__)

    def field_taken(self, db: Session, field_name: str, exclude_self: bool = True) -> bool:
        """
        True when a record holds the same digest for this field. With
        exclude_self (the default) this record's own row does not count.
        """
        column_name = assert_registered(field_name, type(self))
        digest = getattr(self, column_name)
        if not _present(digest):
            return False
        column = type(self).__table__.c[column_name]
        stmt = select(type(self)).where(column == digest).limit(2)
        return any(not exclude_self or record is not self for record in db.execute(stmt).scalars())

    def validate_required_fields(self) -> None:
        """Raise MissingValueError when a required field has no stored ciphertext."""
        for spec in self.__encrypted_fields__:
            if spec.required and not self.is_encrypted(spec.name):
                raise MissingValueError()

    def validate_unique_fields(self, db: Session) -> None:
        for spec in self.__encrypted_fields__:
            if spec.unique and self.field_taken(db, spec.name):
                raise UniquenessError()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @classmethod
    def _digest_filter(
        cls, crypto: FieldCrypto, field_name: str, plaintext: str | None
    ) -> ColumnElement[bool] | None:
        column_name = assert_registered(field_name, cls)
        digest = crypto.index.compute(plaintext)
        if digest is None:
            return None
        return cls.__table__.c[column_name] == digest

    @classmethod
    def find_by_field(
        cls, db: Session, crypto: FieldCrypto, field_name: str, plaintext: str | None
    ) -> Encryptable | None:
        """Return the record whose field matches *plaintext* (normalized), or None."""
        criterion = cls._digest_filter(crypto, field_name, plaintext)
        if criterion is None:
            return None
        return db.execute(select(cls).where(criterion).limit(1)).scalars().first()

    @classmethod
    def find_by_field_or_raise(
        cls, db: Session, crypto: FieldCrypto, field_name: str, plaintext: str | None
    ) -> Encryptable:
        record = cls.find_by_field(db, crypto, field_name, plaintext)
        if record is None:
            raise NotFoundError()
        return record

    @classmethod
    def find_all_by_field(
        cls, db: Session, crypto: FieldCrypto, field_name: str, plaintext: str | None
    ) -> list[Encryptable]:
        criterion = cls._digest_filter(crypto, field_name, plaintext)
        if criterion is None:
            return []
        return list(db.execute(select(cls).where(criterion)).scalars())
