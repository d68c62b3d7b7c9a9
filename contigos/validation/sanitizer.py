"""
Input Sanitization

Normalizes raw form/API values before they become records.
Every function either returns a clean value or raises ValidationError
with a message that can be shown to the user unchanged.

IMPORTANT: Nothing here silently fixes input. An overlong description
is rejected, not truncated.
"""

import math
import re
from enum import Enum
from typing import Any, Optional, TypeVar

from contigos.errors import ValidationError


E = TypeVar("E", bound=Enum)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


def sanitize_string(value: Any, field: Optional[str] = None) -> str:
    """Strip surrounding whitespace and angle brackets."""
    if not isinstance(value, str):
        raise ValidationError("Input must be a string", field)
    return value.replace("<", "").replace(">", "").strip()


def sanitize_description(
    value: Any,
    max_length: int = 100,
    field: str = "beschreibung",
) -> str:
    """Sanitize a description and enforce 1..max_length characters."""
    cleaned = sanitize_string(value, field)
    if not cleaned:
        raise ValidationError("Description cannot be empty", field)
    if len(cleaned) > max_length:
        raise ValidationError(
            f"Description too long (max {max_length} characters)", field
        )
    return cleaned


def _parse_number_text(value: str, field: Optional[str]) -> float:
    text = value.strip()
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")
    text = _NON_NUMERIC.sub("", text)
    try:
        return float(text)
    except ValueError:
        raise ValidationError("Invalid number format", field)


def parse_number(value: Any, field: Optional[str] = None) -> float:
    """
    Turn form input into a finite float.

    Strings may carry a currency sign, spaces and thousands separators.
    When both "." and "," appear, the last one is the decimal separator,
    so the German "1.234,56" and the English "1,234.56" both give 1234.56.
    A lone comma is a decimal separator ("12,50" -> 12.5).
    """
    if isinstance(value, bool):
        raise ValidationError("Invalid number format", field)

    if isinstance(value, str):
        number = _parse_number_text(value, field)
    elif isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            raise ValidationError("Invalid number format", field)
    else:
        raise ValidationError("Invalid number format", field)

    if not math.isfinite(number):
        raise ValidationError("Invalid number format", field)
    return number


def sanitize_number(
    value: Any,
    minimum: float = 0.0,
    maximum: float = float(2**53 - 1),
    allow_negative: bool = False,
    field: Optional[str] = None,
) -> float:
    """Parse a number and check it against the given bounds."""
    number = parse_number(value, field)

    if not allow_negative and number < 0:
        raise ValidationError("Negative numbers not allowed", field)

    if number < minimum or number > maximum:
        raise ValidationError(
            f"Number must be between {minimum:,.2f} and {maximum:,.2f}", field
        )
    return number


def sanitize_amount(
    value: Any,
    minimum: float = 0.01,
    maximum: float = 1_000_000.0,
    field: str = "betrag",
) -> float:
    """Sanitize a monetary amount of an income or expense."""
    return sanitize_number(
        value,
        minimum=minimum,
        maximum=maximum,
        allow_negative=False,
        field=field,
    )


def validate_enum(value: Any, enum_cls: type[E], field: str) -> E:
    """Accept only members (or member values) of enum_cls."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field}. Must be one of: {allowed}", field
        )
