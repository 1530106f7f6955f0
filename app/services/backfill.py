"""
Blind index backfill for legacy rows.

Rows written before a field became searchable carry ciphertext but no digest.
before_persist() already repairs such rows on their next save; this runs the
repair over a whole table in batches so lookups work immediately.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.services.encryption import FieldCrypto

logger = logging.getLogger(__name__)


def backfill_blind_indexes(db: Session, crypto: FieldCrypto, record_type: type, batch_size: int = 100) -> int:
    """Compute missing digests for every searchable field. Returns the number of records updated."""
    table = record_type.__table__
    missing = [
        and_(
            table.c[spec.ciphertext_column].is_not(None),
            table.c[spec.digest_column].is_(None),
        )
        for spec in record_type.__encrypted_fields__.searchable()
    ]
    if not missing:
        return 0

    pk = table.primary_key.columns.values()[0]
    stmt = select(record_type).where(or_(*missing)).order_by(pk)

    updated = 0
    last_key = None
    while True:
        batch_stmt = stmt if last_key is None else stmt.where(pk > last_key)
        batch = list(db.execute(batch_stmt.limit(batch_size)).scalars())
        if not batch:
            break
        for record in batch:
            record.before_persist(crypto)
            updated += 1
        db.flush()
        last_key = getattr(batch[-1], pk.key)
        logger.info("Backfilled blind indexes for %d %s records", updated, record_type.__name__)

    return updated
