from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

REQUIRED = "required"
EMAIL = "email"
FORMAT = "format"
TOO_SHORT = "too_short"
TOO_LONG = "too_long"
BELOW_MIN = "below_min"
ABOVE_MAX = "above_max"
CUSTOM = "custom"

# Highest priority first; used when a control carries several failures.
FAILURE_PRIORITY = (REQUIRED, EMAIL, FORMAT, TOO_SHORT, TOO_LONG, BELOW_MIN, ABOVE_MAX, CUSTOM)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class ValidationFailure:
    kind: str
    params: dict[str, Any] = field(default_factory=dict)
    message: str | None = None


Validator = Callable[[Any], "ValidationFailure | None"]


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _to_number(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        return Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError):
        return None


def required(value: Any) -> ValidationFailure | None:
    if is_empty(value):
        return ValidationFailure(REQUIRED)
    return None


def email(value: Any) -> ValidationFailure | None:
    if is_empty(value):
        return None
    if not _EMAIL_RE.match(str(value).strip()):
        return ValidationFailure(EMAIL)
    return None


def pattern(regex: str) -> Validator:
    compiled = re.compile(regex)

    def _validate(value: Any) -> ValidationFailure | None:
        if is_empty(value):
            return None
        if not compiled.fullmatch(str(value)):
            return ValidationFailure(FORMAT, {"pattern": regex})
        return None

    return _validate


def min_length(n: int) -> Validator:
    def _validate(value: Any) -> ValidationFailure | None:
        if is_empty(value):
            return None
        actual = len(str(value))
        if actual < n:
            return ValidationFailure(TOO_SHORT, {"required_length": n, "actual_length": actual})
        return None

    return _validate


def max_length(n: int) -> Validator:
    def _validate(value: Any) -> ValidationFailure | None:
        if is_empty(value):
            return None
        actual = len(str(value))
        if actual > n:
            return ValidationFailure(TOO_LONG, {"required_length": n, "actual_length": actual})
        return None

    return _validate


def min_value(minimum: float | int | Decimal) -> Validator:
    def _validate(value: Any) -> ValidationFailure | None:
        if is_empty(value):
            return None
        number = _to_number(value)
        if number is None:
            return ValidationFailure(FORMAT)
        if number < Decimal(str(minimum)):
            return ValidationFailure(BELOW_MIN, {"min": minimum, "actual": value})
        return None

    return _validate


def max_value(maximum: float | int | Decimal) -> Validator:
    def _validate(value: Any) -> ValidationFailure | None:
        if is_empty(value):
            return None
        number = _to_number(value)
        if number is None:
            return ValidationFailure(FORMAT)
        if number > Decimal(str(maximum)):
            return ValidationFailure(ABOVE_MAX, {"max": maximum, "actual": value})
        return None

    return _validate


def canonical_message(failure: ValidationFailure) -> str:
    """Default user-facing text for a validation failure."""
    if failure.message:
        return failure.message
    p = failure.params
    if failure.kind == REQUIRED:
        return "This field is required"
    if failure.kind == EMAIL:
        return "Invalid email address"
    if failure.kind == FORMAT:
        return "Invalid format"
    if failure.kind == TOO_SHORT:
        return f"Minimum of {p.get('required_length')} characters"
    if failure.kind == TOO_LONG:
        return f"Maximum of {p.get('required_length')} characters"
    if failure.kind == BELOW_MIN:
        return f"Minimum value is {p.get('min')}"
    if failure.kind == ABOVE_MAX:
        return f"Maximum value is {p.get('max')}"
    return "Invalid field"
