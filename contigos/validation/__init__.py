"""Input validation package."""

from contigos.validation.sanitizer import (
    parse_number,
    sanitize_amount,
    sanitize_description,
    sanitize_number,
    sanitize_string,
    validate_enum,
)
from contigos.validation.validator import RecordValidator

__all__ = [
    "RecordValidator",
    "parse_number",
    "sanitize_amount",
    "sanitize_description",
    "sanitize_number",
    "sanitize_string",
    "validate_enum",
]
