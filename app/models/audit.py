"""Audit log – immutable compliance trail. Never holds plaintext PII."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Index, String, Uuid

from app.models.database import Base


class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor = Column(String(128), nullable=False, comment="User or service identity")
    action = Column(String(64), nullable=False, comment="create | read | lookup | backfill")
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(Uuid, nullable=True)
    detail = Column(JSON, comment="Context for the action, no PII")
    timestamp = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (Index("ix_audit_timestamp", "timestamp"),)
