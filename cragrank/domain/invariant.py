"""Validation guards for records read back from the store."""
import math
from numbers import Real


class MalformedRecordError(ValueError):
    """A stored Route/Log/User does not satisfy the data model."""

    def __init__(self, ref: str, reason: str):
        super().__init__(f"{ref}: {reason}")
        self.ref = ref
        self.reason = reason


class RecordNotFoundError(LookupError):
    """An operation needed a record that does not exist."""

    def __init__(self, ref: str):
        super().__init__(f"{ref} not found")
        self.ref = ref


def _is_number(value) -> bool:
    # bool is an int subclass; a stored True is never a valid point value
    return isinstance(value, Real) and not isinstance(value, bool)


def require_non_negative_number(ref: str, field: str, value) -> float:
    """Raises unless *value* is a finite real number >= 0."""
    if value is None:
        raise MalformedRecordError(ref, f"missing {field}")
    if not _is_number(value):
        raise MalformedRecordError(ref, f"{field} must be a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedRecordError(ref, f"{field} must be finite, got {value}")
    if value < 0:
        raise MalformedRecordError(ref, f"{field} must be non-negative, got {value}")
    return value


def require_non_negative_int(ref: str, field: str, value) -> int:
    """Raises unless *value* is an integral number >= 0. Floats like 3.0 pass."""
    number = require_non_negative_number(ref, field, value)
    if int(number) != number:
        raise MalformedRecordError(ref, f"{field} must be an integer, got {value}")
    return int(number)
