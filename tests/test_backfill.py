"""Tests for the blind index backfill over legacy rows."""

from sqlalchemy import select, update

from app.models.patient import Patient
from app.models.staff import Staff
from app.services.backfill import backfill_blind_indexes
from app.services.records import save_record


def _save_patients(db, crypto, count):
    for i in range(count):
        patient = Patient(patient_code=f"P{i:03d}")
        patient.set_field("email", f"patient{i}@example.com")
        patient.set_field("name", f"Patient {i}")
        save_record(db, crypto, patient)
    db.commit()


def test_backfill_restores_missing_digests(db, crypto):
    _save_patients(db, crypto, 5)
    db.execute(update(Patient).values(email_bidx=None))
    db.commit()
    db.expunge_all()

    assert Patient.find_by_field(db, crypto, "email", "patient3@example.com") is None

    updated = backfill_blind_indexes(db, crypto, Patient, batch_size=2)
    db.commit()

    assert updated == 5
    found = Patient.find_by_field(db, crypto, "email", "PATIENT3@example.com")
    assert found.patient_code == "P003"
    assert found.get_field("name", crypto) == "Patient 3"


def test_backfill_skips_rows_that_need_nothing(db, crypto):
    _save_patients(db, crypto, 3)
    db.execute(update(Patient).where(Patient.patient_code == "P001").values(email_bidx=None))
    db.commit()
    untouched = db.execute(select(Patient).where(Patient.patient_code == "P000")).scalars().one()
    untouched_ciphertext = untouched.email_encrypted

    assert backfill_blind_indexes(db, crypto, Patient) == 1
    db.commit()
    assert backfill_blind_indexes(db, crypto, Patient) == 0

    db.expire_all()
    assert untouched.email_encrypted == untouched_ciphertext


def test_backfill_ignores_records_without_ciphertext(db, crypto):
    staff = Staff(staff_id="S001", role="manager")
    staff.set_field("name", "佐藤医師")
    save_record(db, crypto, staff)
    db.commit()

    assert backfill_blind_indexes(db, crypto, Staff) == 0
    assert staff.email_bidx is None
