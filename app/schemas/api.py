"""Pydantic models for API request/response serialization."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------

class PatientCreate(BaseModel):
    """Incoming patient – shape is checked again against PATIENT_SCHEMA."""
    patient_code: str
    email: str
    name: str
    name_kana: str | None = None
    birth_date: str | None = None


class PatientResponse(BaseModel):
    id: UUID
    patient_code: str
    email: str | None
    name: str | None
    name_kana: str | None = None
    birth_date: str | None = None
    created_at: datetime


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

class StaffCreate(BaseModel):
    staff_id: str
    name: str
    role: str = "staff"
    name_kana: str | None = None
    email: str | None = None


class StaffResponse(BaseModel):
    id: UUID
    staff_id: str
    role: str
    name: str | None
    name_kana: str | None = None
    email: str | None = None


# ---------------------------------------------------------------------------
# Blind-index lookup
# ---------------------------------------------------------------------------

class LookupRequest(BaseModel):
    """Lookup values travel in the body so PII never appears in access logs."""
    field: str = Field(..., max_length=64)
    value: str = Field(..., max_length=255)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

class HealthResponse(BaseModel):
    status: str = "healthy"
    environment: str
    database: str = "connected"
