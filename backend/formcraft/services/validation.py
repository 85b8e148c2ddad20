"""Submission validation against a form schema.

Every field is checked in schema order and every failure is collected, so a
client can highlight all bad inputs after a single round trip. Values that
pass are copied into the cleaned mapping (numbers coerced); keys that are not
schema fields never make it into the cleaned mapping.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any

from formcraft.schemas.form_schema import FieldDefinition, FormSchema

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Decimal notation with optional sign, fraction and exponent ("42", " -1.5 ", ".5", "1e3")
_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
# Unsigned radix literals ("0x1A", "0b11", "0o7")
_PREFIXED_INTEGER_PATTERN = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[bB][01]+|[oO][0-7]+)$")


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class ValidationResult:
    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    errors: list[FieldError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            return {"success": True, "data": self.data}
        return {"success": False, "errors": [error.to_dict() for error in self.errors]}


class _Invalid(Exception):
    """Internal signal: the value failed its field's type rule."""


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def coerce_number(value: Any) -> int | float:
    """Coerce a submitted value to a number the way a form post would.

    Accepts ints, finite floats, booleans (1/0) and numeric strings, with
    surrounding whitespace ignored. A blank string counts as 0 and
    ``0x``/``0b``/``0o`` literals are read in their radix. Raises ValueError
    for anything else.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"not a finite number: {value!r}")
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if _PREFIXED_INTEGER_PATTERN.match(text):
            return int(text, 0)
        if not _NUMBER_PATTERN.match(text):
            raise ValueError(f"not a number: {value!r}")
        if _INTEGER_PATTERN.match(text):
            return int(text)
        number = float(text)
        if not math.isfinite(number):
            raise ValueError(f"out of range: {value!r}")
        return number
    raise ValueError(f"unsupported type: {type(value).__name__}")


def _check_email(field_def: FieldDefinition, value: Any) -> Any:
    if isinstance(value, str) and value.isascii() and _EMAIL_PATTERN.match(value):
        return value
    raise _Invalid(f"{field_def.label} must be a valid email")


def _check_number(field_def: FieldDefinition, value: Any) -> Any:
    try:
        return coerce_number(value)
    except ValueError:
        raise _Invalid(f"{field_def.label} must be a number") from None


def _same_option(option: Any, value: Any) -> bool:
    # Booleans only match booleans; ints and floats compare numerically.
    if isinstance(option, bool) or isinstance(value, bool):
        return type(option) is type(value) and option == value
    return option == value


def _check_select(field_def: FieldDefinition, value: Any) -> Any:
    allowed = field_def.option_values
    if allowed is None:
        return value
    if any(_same_option(option, value) for option in allowed):
        return value
    raise _Invalid(f"{field_def.label} must be one of: {', '.join(field_def.option_labels)}")


def _check_string(field_def: FieldDefinition, value: Any) -> Any:
    if isinstance(value, str):
        return value
    raise _Invalid(f"{field_def.label} must be a string")


_RULES = {
    "email": _check_email,
    "number": _check_number,
    "select": _check_select,
}


def validate_submission(schema: FormSchema, data: dict[str, Any]) -> ValidationResult:
    """Validate raw submitted ``data`` against ``schema``.

    Returns a successful result carrying the cleaned mapping, or a failed
    result carrying one FieldError per offending field. Never raises for
    well-formed input.
    """
    cleaned: dict[str, Any] = {}
    errors: list[FieldError] = []

    for field_def in schema.fields:
        value = data.get(field_def.id)

        if _is_empty(value):
            if field_def.required:
                errors.append(FieldError(field_def.id, f"{field_def.label} is required"))
            continue

        rule = _RULES.get(field_def.type, _check_string)
        try:
            cleaned[field_def.id] = rule(field_def, value)
        except _Invalid as exc:
            errors.append(FieldError(field_def.id, str(exc)))

    if errors:
        return ValidationResult(success=False, errors=errors)
    return ValidationResult(success=True, data=cleaned)
