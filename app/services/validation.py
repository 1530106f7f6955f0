"""
JSON Schema validation service.

Demonstrates:
- Schema-driven validation of PII payloads before encryption
- Collecting all errors rather than failing on the first one
- Error messages that name the offending field but never echo its value
"""

from typing import Any

import jsonschema


def _describe(error: jsonschema.ValidationError) -> str:
    if error.validator in ("required", "additionalProperties"):
        # These messages quote property names only
        return error.message
    location = ".".join(str(part) for part in error.absolute_path) or "record"
    return f"{location}: failed '{error.validator}' check"


def validate_against_schema(data: dict[str, Any], schema: dict[str, Any]) -> list[str]:
    """
    Validate a dict against a JSON schema.
    Returns a list of error messages (empty list = valid).
    """
    validator = jsonschema.Draft7Validator(schema)
    return [_describe(error) for error in validator.iter_errors(data)]
