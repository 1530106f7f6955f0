"""
Column guard – allow-list validation for dynamic lookups.

Any lookup that builds a filter from a field name supplied by a caller goes
through assert_registered() first. Rejection is uniform: an unknown name, an
injection-shaped string, a registered but unsearchable field and a record type
without a registry all produce the same ConfigurationError, raised before any
query construction runs.
"""

from __future__ import annotations

import logging

from app.models.registry import FieldRegistry
from app.services.errors import ConfigurationError

logger = logging.getLogger(__name__)


def assert_registered(field_name: object, record_type: type) -> str:
    """Return the digest column name for a searchable field, or raise ConfigurationError."""
    registry = getattr(record_type, "__encrypted_fields__", None)
    spec = registry.get(field_name) if isinstance(registry, FieldRegistry) else None
    if spec is None or not spec.searchable:
        logger.warning("Rejected lookup on a non-searchable field for %s", record_type.__name__)
        raise ConfigurationError()
    return spec.digest_column
