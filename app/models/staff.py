"""Staff record – hospital staff (managers and staff members)."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text, Uuid

from app.models.database import Base
from app.models.encryptable import Encryptable
from app.models.registry import FieldRegistry, FieldSpec

STAFF_ROLES = ("manager", "staff")


class Staff(Encryptable, Base):
    # "staff" is uncountable
    __tablename__ = "staff"

    __encrypted_fields__ = FieldRegistry(
        FieldSpec.encrypted("name", required=True),
        FieldSpec.encrypted("name_kana"),
        FieldSpec.encrypted("email", searchable=True, unique=True),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    staff_id = Column(String(64), unique=True, nullable=False)
    role = Column(String(16), nullable=False, default="staff")

    name_encrypted = Column(Text)
    name_encrypted_iv = Column(Text)
    name_kana_encrypted = Column(Text)
    name_kana_encrypted_iv = Column(Text)
    # Email is optional for staff; when absent all three columns stay null
    email_encrypted = Column(Text)
    email_encrypted_iv = Column(Text)
    email_bidx = Column(String(64), unique=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('manager', 'staff')", name="ck_staff_role"),
    )

    def is_manager(self) -> bool:
        return self.role == "manager"
