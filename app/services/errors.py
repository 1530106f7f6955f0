"""
Error kinds raised by the PII protection layer.

Messages are deliberately generic: the name of a field or any part of a value
is itself information about encrypted contents, so none of these exceptions
carry either.
"""


class PIIProtectionError(Exception):
    """Base class for every failure raised by the encryption core."""

    default_message = "processing error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)


class FatalConfigurationError(PIIProtectionError):
    """Key material is missing or malformed. The process must not start."""

    default_message = "encryption keys are not configured correctly"


class ConfigurationError(PIIProtectionError):
    """A field name is not registered (or not searchable) for the record type."""

    default_message = "field is not available for this operation"


class IntegrityError(PIIProtectionError):
    """Authentication tag did not verify. Signals corruption or tampering."""

    default_message = "stored value failed integrity verification"


class InvariantViolation(PIIProtectionError):
    """Ciphertext, IV and digest columns are out of step with each other."""

    default_message = "encrypted field storage is inconsistent"


class NotFoundError(PIIProtectionError):
    default_message = "record not found"


class UniquenessError(PIIProtectionError):
    default_message = "record already exists"


class MissingValueError(PIIProtectionError):
    """A field declared as required has no value at save time."""

    default_message = "required value is missing"
