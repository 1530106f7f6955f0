"""
JSON schemas for incoming patient and staff records.

Demonstrates:
- JSON Schema validation as the contract for PII-bearing payloads
- Shape checks only; uniqueness is enforced through the blind index
"""

EMAIL_PATTERN = "^[^@\\s]+@[^@\\s]+\\.[^@\\s]+$"

PATIENT_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Patient",
    "description": "Patient registration payload. All PII is encrypted before storage.",
    "type": "object",
    "required": ["patient_code", "email", "name"],
    "properties": {
        "patient_code": {
            "type": "string",
            "minLength": 1,
            "maxLength": 64,
            "description": "Business identifier, stored in the clear.",
        },
        "email": {
            "type": "string",
            "pattern": EMAIL_PATTERN,
            "maxLength": 254,
            "description": "Encrypted; searchable through the email blind index.",
        },
        "name": {"type": "string", "minLength": 1, "maxLength": 255},
        "name_kana": {"type": ["string", "null"], "maxLength": 255},
        "birth_date": {
            "type": ["string", "null"],
            "pattern": "^\\d{4}-\\d{2}-\\d{2}$",
            "description": "ISO 8601 date (YYYY-MM-DD).",
        },
    },
    "additionalProperties": False,
}


STAFF_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Staff",
    "type": "object",
    "required": ["staff_id", "name", "role"],
    "properties": {
        "staff_id": {"type": "string", "minLength": 1, "maxLength": 64},
        "name": {"type": "string", "minLength": 1, "maxLength": 255},
        "name_kana": {"type": ["string", "null"], "maxLength": 255},
        "email": {
            "anyOf": [
                {"type": "string", "pattern": EMAIL_PATTERN, "maxLength": 254},
                {"type": "null"},
            ]
        },
        "role": {"type": "string", "enum": ["manager", "staff"]},
    },
    "additionalProperties": False,
}
