"""
Patient record – identity data for a rehabilitation patient.

Demonstrates:
- PII column separation (ciphertext + IV per field, no plaintext columns)
- Blind index column for email, unique at the database level
- Non-sensitive operational fields kept in the clear
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, String, Text, Uuid

from app.models.database import Base
from app.models.encryptable import Encryptable
from app.models.registry import FieldRegistry, FieldSpec


class Patient(Encryptable, Base):
    __tablename__ = "patients"

    __encrypted_fields__ = FieldRegistry(
        FieldSpec.encrypted("email", searchable=True, unique=True, required=True),
        FieldSpec.encrypted("name"),
        FieldSpec.encrypted("name_kana"),
        FieldSpec.encrypted("birth_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    patient_code = Column(String(64), unique=True, nullable=False, comment="Business identifier")

    # PII – AES-256-GCM ciphertext and IV, base64 encoded
    email_encrypted = Column(Text, comment="AES-GCM encrypted email")
    email_encrypted_iv = Column(Text)
    email_bidx = Column(String(64), unique=True, comment="HMAC-SHA256 blind index of email")
    name_encrypted = Column(Text, comment="AES-GCM encrypted full name")
    name_encrypted_iv = Column(Text)
    name_kana_encrypted = Column(Text, comment="AES-GCM encrypted name reading")
    name_kana_encrypted_iv = Column(Text)
    birth_date_encrypted = Column(Text, comment="AES-GCM encrypted birth date (YYYY-MM-DD)")
    birth_date_encrypted_iv = Column(Text)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (Index("ix_patients_patient_code", "patient_code"),)
