"""
Tests for Contigos

Test strategy:
1. Unit tests for individual components (models, validators, engine)
2. Service tests against in-memory storage
3. No real API calls in tests (Google Sheets is replaced by a fake worksheet)
"""

import pytest
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from contigos.models.budget import (
    RECORD_TYPES,
    SETTINGS_ID,
    BudgetSettings,
    BudgetSnapshot,
    CalculationResults,
    Expense,
    Income,
    Partner,
    Payer,
    PrivateExpense,
    RecordKind,
)
from contigos.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestBudgetModels:
    """Tests for the input records."""

    def test_income_creation(self):
        """Test Income model creation."""
        income = Income(beschreibung="Gehalt", betrag=2215, quelle=Partner.PARTNER1)
        assert income.betrag == 2215.0
        assert income.quelle is Partner.PARTNER1
        assert income.KIND is RecordKind.INCOME

    def test_income_strips_whitespace(self):
        """Test that whitespace is stripped from descriptions."""
        income = Income(beschreibung="  Gehalt  ", betrag=100, quelle="Partner2")
        assert income.beschreibung == "Gehalt"
        assert income.quelle is Partner.PARTNER2

    def test_expense_accepts_shared_account(self):
        """Test the joint account as payer."""
        expense = Expense(beschreibung="Miete", betrag=50, bezahlt_von="Gemeinschaftskonto")
        assert expense.bezahlt_von is Payer.SHARED_ACCOUNT

    def test_expense_rejects_unknown_payer(self):
        """Test that payers outside the closed set are rejected."""
        with pytest.raises(PydanticValidationError):
            Expense(beschreibung="Miete", betrag=50, bezahlt_von="Nachbar")

    def test_private_expense_rejects_shared_account(self):
        """Private expenses always belong to a partner."""
        with pytest.raises(PydanticValidationError):
            PrivateExpense(beschreibung="Kino", betrag=12, person="Gemeinschaftskonto")

    @pytest.mark.parametrize("amount", [0, -10, float("nan"), float("inf")])
    def test_record_rejects_non_positive_amount(self, amount):
        """Test that amounts must be finite and strictly positive."""
        with pytest.raises(PydanticValidationError):
            Income(beschreibung="Gehalt", betrag=amount, quelle=Partner.PARTNER1)

    def test_records_are_immutable(self):
        """Records are frozen once created."""
        income = Income(beschreibung="Gehalt", betrag=100, quelle=Partner.PARTNER1)
        with pytest.raises(PydanticValidationError):
            income.betrag = 200

    def test_record_types_cover_every_kind(self):
        for kind, record_type in RECORD_TYPES.items():
            assert record_type.KIND is kind

    def test_settings_defaults(self):
        """Settings default to zero under the fixed singleton key."""
        settings = BudgetSettings()
        assert settings.id == SETTINGS_ID
        assert settings.restgeld_vormonat == 0.0
        assert settings.comida_betrag == 0.0

    def test_settings_allow_negative_remainder(self):
        settings = BudgetSettings(restgeld_vormonat=-500)
        assert settings.restgeld_vormonat == -500.0

    def test_settings_reject_negative_fixed_costs(self):
        with pytest.raises(PydanticValidationError):
            BudgetSettings(comida_betrag=-1)

    def test_snapshot_defaults_to_empty(self):
        snapshot = BudgetSnapshot()
        assert snapshot.incomes == ()
        assert snapshot.expenses == ()
        assert snapshot.settings.comida_betrag == 0.0


class TestCalculationResults:
    """Tests for the engine output record."""

    def test_default_is_all_zero(self):
        results = CalculationResults()
        assert all(value == 0.0 for value in results.model_dump().values())

    def test_money_fields_exclude_percentages_and_ratios(self):
        money = CalculationResults.money_fields()
        assert "finale_ueberweisung_p1" in money
        assert "p1_anteil_prozent" not in money
        assert "p1_ratio" not in money
        assert len(money) + 4 == len(CalculationResults.model_fields)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            description="Settings changed",
        )
        assert event.event_type == AuditEventType.SETTINGS_UPDATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            description="Income created",
            details={"beschreibung": "Gehalt", "betrag": 2215.0},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "record_created"
        assert log_dict["details"]["beschreibung"] == "Gehalt"

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.LOGIN_SUCCEEDED,
            description="Login succeeded",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "login_succeeded"  # event_type
        assert row[10] == "True"  # is_user_action

    def test_audit_event_builder_record_created(self):
        """Test AuditEventBuilder.record_created."""
        record_id = uuid4()
        correlation_id = uuid4()

        event = AuditEventBuilder.record_created(
            entity_type="expense",
            record_id=record_id,
            description="Miete",
            amount=50.0,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.entity_id == record_id
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_control_check_failed(self):
        """Test AuditEventBuilder.control_check_failed."""
        event = AuditEventBuilder.control_check_failed(expected=100.0, actual=90.0)

        assert event.event_type == AuditEventType.CONTROL_CHECK_FAILED
        assert event.severity == AuditSeverity.WARNING
        assert event.details["difference"] == 10.0

    def test_audit_event_builder_login_failed(self):
        event = AuditEventBuilder.login_attempt(succeeded=False)
        assert event.event_type == AuditEventType.LOGIN_FAILED
        assert event.severity == AuditSeverity.WARNING


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
