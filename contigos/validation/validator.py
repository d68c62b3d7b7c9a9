"""
Record Validation

DESIGN DECISION: Every write goes through this validator first.
Raw input (form fields, JSON bodies) is sanitized field by field and
only then turned into an immutable record. A ValidationError means
nothing was written.

The checks are:
- Description: trimmed, angle brackets removed, non-empty, bounded length
- Amount: finite, within [min_amount, max_amount]
- Attribution: member of the closed enum for that record kind
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from contigos.config import AppSettings, get_settings
from contigos.errors import ValidationError
from contigos.models.budget import (
    RECORD_TYPES,
    BudgetSettings,
    Expense,
    Income,
    Partner,
    Payer,
    PrivateExpense,
    RecordKind,
)
from contigos.validation.sanitizer import (
    sanitize_amount,
    sanitize_description,
    sanitize_number,
    validate_enum,
)


# Attribution field per record kind: (field name, allowed enum)
ATTRIBUTION_FIELDS: dict[RecordKind, tuple[str, type]] = {
    RecordKind.INCOME: ("quelle", Partner),
    RecordKind.EXPENSE: ("bezahlt_von", Payer),
    RecordKind.PRIVATE_EXPENSE: ("person", Partner),
}

# Settings fields that may go below zero
SIGNED_SETTINGS_FIELDS = (
    "restgeld_vormonat",
    "tagesgeldkonto_betrag",
    "gemeinschaftskonto_aktuell",
)
UNSIGNED_SETTINGS_FIELDS = ("comida_betrag", "ahorros_betrag")


class RecordValidator:
    """
    Turns raw input into validated records.

    Bounds come from AppSettings so they can be tuned per deployment.
    """

    def __init__(self, app_settings: Optional[AppSettings] = None):
        self._settings = app_settings or get_settings().app

    @staticmethod
    def _require(data: Mapping[str, Any], field: str) -> Any:
        if field not in data or data[field] is None:
            raise ValidationError(f"Field '{field}' is required", field)
        return data[field]

    def clean_fields(
        self,
        kind: RecordKind,
        data: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Sanitize the three writable fields of a record."""
        attribution_field, allowed = ATTRIBUTION_FIELDS[kind]
        return {
            "beschreibung": sanitize_description(
                self._require(data, "beschreibung"),
                max_length=self._settings.max_description_length,
            ),
            "betrag": sanitize_amount(
                self._require(data, "betrag"),
                minimum=self._settings.min_amount,
                maximum=self._settings.max_amount,
            ),
            attribution_field: validate_enum(
                self._require(data, attribution_field),
                allowed,
                attribution_field,
            ),
        }

    def validate_record(
        self,
        kind: RecordKind,
        data: Mapping[str, Any],
        existing=None,
    ):
        """
        Validate input for a new record, or for an update of `existing`.

        Returns the record that should be written.
        """
        fields = self.clean_fields(kind, data)

        if existing is not None:
            if existing.KIND is not kind:
                raise ValidationError(
                    f"Cannot update a {existing.KIND.value} as {kind.value}"
                )
            return existing.model_copy(
                update={**fields, "updated_at": datetime.now(timezone.utc)}
            )

        try:
            return RECORD_TYPES[kind](**fields)
        except PydanticValidationError as e:
            error = e.errors()[0]
            field = str(error["loc"][0]) if error.get("loc") else None
            raise ValidationError(error["msg"], field)

    def validate_income(
        self,
        data: Mapping[str, Any],
        existing: Optional[Income] = None,
    ) -> Income:
        return self.validate_record(RecordKind.INCOME, data, existing)

    def validate_expense(
        self,
        data: Mapping[str, Any],
        existing: Optional[Expense] = None,
    ) -> Expense:
        return self.validate_record(RecordKind.EXPENSE, data, existing)

    def validate_private_expense(
        self,
        data: Mapping[str, Any],
        existing: Optional[PrivateExpense] = None,
    ) -> PrivateExpense:
        return self.validate_record(RecordKind.PRIVATE_EXPENSE, data, existing)

    def validate_settings(
        self,
        data: Mapping[str, Any],
        current: Optional[BudgetSettings] = None,
    ) -> BudgetSettings:
        """
        Validate a (partial) settings update.

        Fields missing from `data` keep their current value.
        Unknown fields are rejected so typos don't go unnoticed.
        """
        current = current or BudgetSettings()
        known = set(SIGNED_SETTINGS_FIELDS) | set(UNSIGNED_SETTINGS_FIELDS)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(
                f"Unknown settings field: {unknown[0]}", unknown[0]
            )

        limit = self._settings.max_amount
        changes: dict[str, float] = {}
        for field in SIGNED_SETTINGS_FIELDS:
            if field in data:
                changes[field] = sanitize_number(
                    data[field],
                    minimum=-limit,
                    maximum=limit,
                    allow_negative=True,
                    field=field,
                )
        for field in UNSIGNED_SETTINGS_FIELDS:
            if field in data:
                changes[field] = sanitize_number(
                    data[field],
                    minimum=0.0,
                    maximum=limit,
                    allow_negative=False,
                    field=field,
                )

        return current.model_copy(
            update={**changes, "updated_at": datetime.now(timezone.utc)}
        )
