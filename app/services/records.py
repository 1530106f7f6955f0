"""
Save sequence for records carrying encrypted fields.

The encryption hook is an explicit step rather than an ORM event: every write
path goes through save_record(), which runs before_persist(), then the
required-field and blind-index uniqueness checks, then the flush.
"""

from __future__ import annotations

import logging

from sqlalchemy import exc as sa_exc
from sqlalchemy.orm import Session

from app.models.encryptable import Encryptable
from app.services.encryption import FieldCrypto
from app.services.errors import UniquenessError

logger = logging.getLogger(__name__)


def save_record(db: Session, crypto: FieldCrypto, record: Encryptable) -> Encryptable:
    """
    Encrypt pending PII, check required and unique fields, then flush the record.

    Raises MissingValueError or UniquenessError before anything is written.
    A unique constraint that only fails at flush time (a concurrent writer, or
    a plain column such as patient_code) also raises UniquenessError, but the
    session is rolled back first: everything the caller flushed earlier in the
    same transaction is discarded along with this record.
    """
    record.before_persist(crypto)
    record.validate_required_fields()
    record.validate_unique_fields(db)
    db.add(record)
    try:
        db.flush()
    except sa_exc.IntegrityError:
        db.rollback()
        logger.warning("Unique constraint rejected %s on flush", type(record).__name__)
        raise UniquenessError() from None
    return record
