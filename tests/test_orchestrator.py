"""
Tests for the service layer: validate, store, audit, calculate.
"""

import asyncio
from uuid import uuid4

import pytest

from contigos.audit import AuditLogger, create_correlation_id
from contigos.config import AppSettings
from contigos.errors import ValidationError
from contigos.models.audit import AuditEvent, AuditEventType
from contigos.models.budget import (
    CalculationResults,
    Income,
    Partner,
    Payer,
    RecordKind,
)
from contigos.orchestrator import BudgetService, create_app_components
from contigos.services.storage import (
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    NotFoundError,
    StorageError,
)
from contigos.validation import RecordValidator


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def storage():
    return InMemoryBudgetStorage()


@pytest.fixture
def service(storage, audit_storage):
    return BudgetService(
        storage,
        validator=RecordValidator(AppSettings()),
        audit_logger=AuditLogger(audit_storage),
    )


def event_types(audit_storage, correlation_id):
    events = run(audit_storage.get_events_by_correlation_id(correlation_id))
    return [e.event_type for e in events]


class TestBudgetFlow:
    """A full month entered through the service."""

    def test_example_month(self, service):
        run(service.update_settings({"comida_betrag": "1200", "restgeld_vormonat": 0}))
        run(service.add_income({"beschreibung": "Gehalt", "betrag": 2215, "quelle": "Partner1"}))
        run(service.add_income({"beschreibung": "Gehalt", "betrag": 1600, "quelle": "Partner2"}))
        run(service.add_expense(
            {"beschreibung": "Strom", "betrag": 50, "bezahlt_von": "Gemeinschaftskonto"}
        ))
        run(service.add_private_expense({"beschreibung": "Kino", "betrag": 12, "person": "Partner1"}))

        calculation = run(service.calculate())

        assert calculation.inconsistency is None
        assert len(calculation.snapshot.incomes) == 2
        assert len(calculation.snapshot.private_expenses) == 1
        assert round(calculation.results.finale_ueberweisung_p1, 2) == 725.75
        assert round(calculation.results.finale_ueberweisung_p2, 2) == 524.25

    def test_calculation_without_data(self, service):
        calculation = run(service.calculate())
        assert calculation.results == CalculationResults()
        assert calculation.inconsistency is None

    def test_create_is_audited(self, service, audit_storage):
        correlation_id = create_correlation_id()
        expense = run(service.add_expense(
            {"beschreibung": "Miete", "betrag": "50", "bezahlt_von": "Partner2"},
            correlation_id,
        ))

        assert expense.bezahlt_von is Payer.PARTNER2
        events = run(audit_storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [AuditEventType.RECORD_CREATED]
        assert events[0].entity_id == expense.id
        assert events[0].entity_type == "expense"

    def test_update_and_delete(self, service, storage):
        income = run(service.add_income(
            {"beschreibung": "Gehalt", "betrag": 2000, "quelle": "Partner1"}
        ))
        updated = run(service.update_income(
            income.id, {"beschreibung": "Gehalt Mai", "betrag": 2100, "quelle": "Partner2"}
        ))
        assert updated.id == income.id
        assert updated.quelle is Partner.PARTNER2
        assert run(service.list_records(RecordKind.INCOME)) == [updated]

        run(service.delete_income(income.id))
        assert run(storage.list_records(RecordKind.INCOME)) == []

    def test_settings_update_is_partial(self, service, storage):
        run(service.update_settings({"comida_betrag": 1200, "ahorros_betrag": 300}))
        run(service.update_settings({"ahorros_betrag": 250}))

        settings = run(storage.get_settings())
        assert settings.comida_betrag == 1200
        assert settings.ahorros_betrag == 250


class TestFailures:
    """Rejected input and missing records are audited and re-raised."""

    def test_invalid_input_writes_nothing(self, service, storage, audit_storage):
        correlation_id = create_correlation_id()
        with pytest.raises(ValidationError) as exc_info:
            run(service.add_expense(
                {"beschreibung": "Miete", "betrag": 0, "bezahlt_von": "Partner1"},
                correlation_id,
            ))

        assert exc_info.value.field == "betrag"
        assert run(storage.list_records(RecordKind.EXPENSE)) == []
        assert event_types(audit_storage, correlation_id) == [AuditEventType.VALIDATION_FAILED]

    def test_invalid_settings_keep_old_values(self, service, storage):
        run(service.update_settings({"comida_betrag": 1200}))
        with pytest.raises(ValidationError):
            run(service.update_settings({"comida_betrag": -5}))
        assert run(storage.get_settings()).comida_betrag == 1200

    def test_update_missing_record(self, service, audit_storage):
        correlation_id = create_correlation_id()
        with pytest.raises(NotFoundError):
            run(service.update_expense(
                uuid4(),
                {"beschreibung": "Miete", "betrag": 50, "bezahlt_von": "Partner1"},
                correlation_id,
            ))
        assert event_types(audit_storage, correlation_id) == [AuditEventType.RECORD_NOT_FOUND]

    def test_delete_missing_record(self, service, audit_storage):
        correlation_id = create_correlation_id()
        with pytest.raises(NotFoundError):
            run(service.delete_private_expense(uuid4(), correlation_id))
        assert event_types(audit_storage, correlation_id) == [AuditEventType.RECORD_NOT_FOUND]

    def test_control_failure_is_reported(self, service, audit_storage, monkeypatch):
        broken = CalculationResults(
            kontrolle_einzahlung_noetig=100.0,
            kontrolle_summe_ueberweisungen=90.0,
        )
        monkeypatch.setattr(
            "contigos.orchestrator.compute_results", lambda *args: broken
        )
        correlation_id = create_correlation_id()

        calculation = run(service.calculate(correlation_id))

        # Reported, never corrected
        assert calculation.results is broken
        assert calculation.inconsistency.difference == pytest.approx(10.0)
        assert event_types(audit_storage, correlation_id) == [
            AuditEventType.CALCULATION_COMPLETED,
            AuditEventType.CONTROL_CHECK_FAILED,
        ]


class UnavailableBudgetStorage(InMemoryBudgetStorage):
    """Reads work, every write fails like an unreachable backend."""

    async def upsert_settings(self, settings):
        raise StorageError("backend unavailable")

    async def create_record(self, record):
        raise StorageError("backend unavailable")

    async def update_record(self, record):
        raise StorageError("backend unavailable")

    async def delete_record(self, kind, record_id):
        raise StorageError("backend unavailable")


class UnreadableBudgetStorage(InMemoryBudgetStorage):
    async def list_records(self, kind):
        raise StorageError("backend unavailable")


class TestStorageFailures:
    """Backend failures are audited before they reach the caller."""

    @pytest.fixture
    def unavailable(self, audit_storage):
        return BudgetService(
            UnavailableBudgetStorage(),
            validator=RecordValidator(AppSettings()),
            audit_logger=AuditLogger(audit_storage),
        )

    def assert_storage_failure_audited(self, audit_storage, correlation_id, operation):
        events = run(audit_storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_type for e in events] == [AuditEventType.EXTERNAL_SERVICE_ERROR]
        assert events[0].details == {"service": "storage", "operation": operation}
        assert events[0].error_message == "backend unavailable"

    def test_failed_create(self, unavailable, audit_storage):
        correlation_id = create_correlation_id()
        with pytest.raises(StorageError):
            run(unavailable.add_income(
                {"beschreibung": "Gehalt", "betrag": 100, "quelle": "Partner1"},
                correlation_id,
            ))
        self.assert_storage_failure_audited(audit_storage, correlation_id, "create_record")

    def test_failed_settings_update(self, unavailable, audit_storage):
        correlation_id = create_correlation_id()
        with pytest.raises(StorageError):
            run(unavailable.update_settings({"comida_betrag": 1200}, correlation_id))
        self.assert_storage_failure_audited(audit_storage, correlation_id, "upsert_settings")

    def test_failed_update(self, unavailable, audit_storage):
        income = Income(beschreibung="Gehalt", betrag=100, quelle=Partner.PARTNER1)
        # Seed the record directly; the backend only refuses writes
        unavailable._storage._records[RecordKind.INCOME][income.id] = income
        correlation_id = create_correlation_id()
        with pytest.raises(StorageError):
            run(unavailable.update_income(
                income.id,
                {"beschreibung": "Gehalt", "betrag": 200, "quelle": "Partner1"},
                correlation_id,
            ))
        self.assert_storage_failure_audited(audit_storage, correlation_id, "update_record")

    def test_failed_delete(self, unavailable, audit_storage):
        correlation_id = create_correlation_id()
        with pytest.raises(StorageError):
            run(unavailable.delete_expense(uuid4(), correlation_id))
        self.assert_storage_failure_audited(audit_storage, correlation_id, "delete_record")

    def test_failed_calculation(self, audit_storage):
        service = BudgetService(
            UnreadableBudgetStorage(),
            validator=RecordValidator(AppSettings()),
            audit_logger=AuditLogger(audit_storage),
        )
        correlation_id = create_correlation_id()
        with pytest.raises(StorageError):
            run(service.calculate(correlation_id))
        self.assert_storage_failure_audited(audit_storage, correlation_id, "load_snapshot")


class FailingAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event: AuditEvent) -> bool:
        raise RuntimeError("sheet unavailable")


class TestAuditLogger:
    """Audit persistence never breaks the main flow."""

    def test_storage_failure_returns_false(self):
        audit_logger = AuditLogger(FailingAuditStorage())
        event = AuditEvent(event_type=AuditEventType.SETTINGS_UPDATED, description="x")
        assert run(audit_logger.log(event)) is False

    def test_without_storage(self):
        event = AuditEvent(event_type=AuditEventType.SETTINGS_UPDATED, description="x")
        assert run(AuditLogger().log(event)) is True

    def test_service_works_with_failing_audit_storage(self, storage):
        service = BudgetService(
            storage,
            validator=RecordValidator(AppSettings()),
            audit_logger=AuditLogger(FailingAuditStorage()),
        )
        run(service.add_income({"beschreibung": "Gehalt", "betrag": 100, "quelle": "Partner1"}))
        assert len(run(storage.list_records(RecordKind.INCOME))) == 1


class TestCreateAppComponents:
    """Factory wiring."""

    def test_memory_backend(self):
        service, audit_logger = create_app_components(use_storage=False)
        assert isinstance(service, BudgetService)
        assert isinstance(audit_logger, AuditLogger)

    def test_falls_back_to_memory_without_sheets_config(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)
        service, _ = create_app_components(use_storage=True)
        assert isinstance(service._storage, InMemoryBudgetStorage)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
