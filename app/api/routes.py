"""
FastAPI routes – the thin API surface over encrypted records.

Demonstrates:
- Dependency injection (database session and field crypto via Depends)
- Explicit save sequence for encrypted records
- Blind-index lookups with caller-chosen field names routed through the column guard
- Audit entries that record which field was used, never its value
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import exc as sa_exc
from sqlalchemy import text
from sqlalchemy.orm import Session

from app.config import settings
from app.models.database import get_db
from app.models.patient import Patient
from app.models.staff import Staff
from app.schemas.api import (
    HealthResponse,
    LookupRequest,
    PatientCreate,
    PatientResponse,
    StaffCreate,
    StaffResponse,
)
from app.schemas.records import PATIENT_SCHEMA, STAFF_SCHEMA
from app.services.audit import log_action
from app.services.encryption import FieldCrypto
from app.services.records import save_record
from app.services.validation import validate_against_schema

logger = logging.getLogger(__name__)

router = APIRouter()


def get_crypto(request: Request) -> FieldCrypto:
    """FastAPI dependency returning the process-wide cipher and blind index."""
    return request.app.state.field_crypto


def _patient_response(patient: Patient, crypto: FieldCrypto) -> PatientResponse:
    return PatientResponse(
        id=patient.id,
        patient_code=patient.patient_code,
        email=patient.get_field("email", crypto),
        name=patient.get_field("name", crypto),
        name_kana=patient.get_field("name_kana", crypto),
        birth_date=patient.get_field("birth_date", crypto),
        created_at=patient.created_at,
    )


def _staff_response(staff: Staff, crypto: FieldCrypto) -> StaffResponse:
    return StaffResponse(
        id=staff.id,
        staff_id=staff.staff_id,
        role=staff.role,
        name=staff.get_field("name", crypto),
        name_kana=staff.get_field("name_kana", crypto),
        email=staff.get_field("email", crypto),
    )


def _reject_invalid(payload: dict, schema: dict) -> None:
    errors = validate_against_schema(payload, schema)
    if errors:
        raise HTTPException(status_code=422, detail=errors)


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthResponse)
def health_check(db: Session = Depends(get_db)):
    """Basic health endpoint – verifies DB connectivity."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except sa_exc.SQLAlchemyError:
        db_status = "disconnected"
    return HealthResponse(
        status="healthy",
        environment=settings.ENVIRONMENT,
        database=db_status,
    )


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------

@router.post("/patients", response_model=PatientResponse, status_code=201)
def create_patient(
    request: PatientCreate,
    db: Session = Depends(get_db),
    crypto: FieldCrypto = Depends(get_crypto),
):
    """Register a patient. Email, name, name reading and birth date are stored encrypted."""
    payload = request.model_dump()
    _reject_invalid(payload, PATIENT_SCHEMA)

    patient = Patient(patient_code=payload["patient_code"])
    for field_name in ("email", "name", "name_kana", "birth_date"):
        patient.set_field(field_name, payload[field_name])
    save_record(db, crypto, patient)

    log_action(
        db,
        actor="api_user",
        action="create",
        resource_type="Patient",
        resource_id=patient.id,
    )
    db.commit()
    return _patient_response(patient, crypto)


@router.post("/patients/lookup", response_model=PatientResponse)
def lookup_patient(
    request: LookupRequest,
    db: Session = Depends(get_db),
    crypto: FieldCrypto = Depends(get_crypto),
):
    """Exact-match lookup over an encrypted, searchable field (case-insensitive)."""
    patient = Patient.find_by_field_or_raise(db, crypto, request.field, request.value)
    log_action(
        db,
        actor="api_user",
        action="lookup",
        resource_type="Patient",
        resource_id=patient.id,
        detail={"field": request.field},
    )
    db.commit()
    return _patient_response(patient, crypto)


@router.get("/patients/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: UUID,
    db: Session = Depends(get_db),
    crypto: FieldCrypto = Depends(get_crypto),
):
    patient = db.get(Patient, patient_id)
    if not patient:
        raise HTTPException(status_code=404, detail="Record not found")

    log_action(
        db,
        actor="api_user",
        action="read",
        resource_type="Patient",
        resource_id=patient.id,
    )
    db.commit()
    return _patient_response(patient, crypto)


# ---------------------------------------------------------------------------
# Staff
# ---------------------------------------------------------------------------

@router.post("/staff", response_model=StaffResponse, status_code=201)
def create_staff(
    request: StaffCreate,
    db: Session = Depends(get_db),
    crypto: FieldCrypto = Depends(get_crypto),
):
    payload = request.model_dump()
    _reject_invalid(payload, STAFF_SCHEMA)

    staff = Staff(staff_id=payload["staff_id"], role=payload["role"])
    for field_name in ("name", "name_kana", "email"):
        staff.set_field(field_name, payload[field_name])
    save_record(db, crypto, staff)

    log_action(
        db,
        actor="api_user",
        action="create",
        resource_type="Staff",
        resource_id=staff.id,
    )
    db.commit()
    return _staff_response(staff, crypto)


@router.post("/staff/lookup", response_model=StaffResponse)
def lookup_staff(
    request: LookupRequest,
    db: Session = Depends(get_db),
    crypto: FieldCrypto = Depends(get_crypto),
):
    staff = Staff.find_by_field_or_raise(db, crypto, request.field, request.value)
    log_action(
        db,
        actor="api_user",
        action="lookup",
        resource_type="Staff",
        resource_id=staff.id,
        detail={"field": request.field},
    )
    db.commit()
    return _staff_response(staff, crypto)
