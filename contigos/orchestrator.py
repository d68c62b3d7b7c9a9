"""
Main Orchestrator for Contigos

This module ties the components together and defines the flows for:
1. Writes (raw input -> validate -> store -> audit)
2. Calculation (snapshot -> engine -> control check -> audit)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written before it passed validation
- The engine only ever sees a complete snapshot read from storage
- A failed control check is reported, never "corrected"
- Every step is audited
"""

from collections.abc import Mapping
from typing import Any, NamedTuple, Optional
from uuid import UUID

import structlog

from contigos.audit import AuditLogger, create_correlation_id
from contigos.calculations import check_control, compute_results
from contigos.config import get_settings
from contigos.errors import ValidationError
from contigos.models.budget import (
    ArithmeticInconsistency,
    BudgetSettings,
    BudgetSnapshot,
    CalculationResults,
    Expense,
    Income,
    PrivateExpense,
    RecordKind,
)
from contigos.services.storage import (
    AuditStorageInterface,
    BudgetStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsBudgetStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    NotFoundError,
    StorageError,
)
from contigos.validation import RecordValidator


logger = structlog.get_logger()


class Calculation(NamedTuple):
    """One run of the engine together with the snapshot it ran on."""
    snapshot: BudgetSnapshot
    results: CalculationResults
    inconsistency: Optional[ArithmeticInconsistency]


class BudgetService:
    """
    Orchestrates reads, writes and calculations.

    Write flow:
    1. Validate → sanitize raw input into a record (ValidationError on failure)
    2. Store → create/update/delete in storage (NotFoundError on missing id)
    3. Audit → record what happened, failures included

    Calculation flow:
    1. Snapshot → read settings and all records together
    2. Compute → run the allocation engine
    3. Check → run the control check and audit a failure
    """

    def __init__(
        self,
        storage: BudgetStorageInterface,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger or AuditLogger()
        self._control_tolerance = get_settings().app.control_tolerance

    async def _storage_failed(
        self,
        operation: str,
        error: StorageError,
        correlation_id: Optional[UUID],
    ) -> None:
        await self._audit_logger.log_external_service_error(
            "storage", str(error), operation, correlation_id
        )

    # ------------------------------------------------------------------
    # Reads and calculation
    # ------------------------------------------------------------------

    async def load_snapshot(self) -> BudgetSnapshot:
        """Read everything a calculation needs in one go."""
        return BudgetSnapshot(
            settings=await self._storage.get_settings(),
            incomes=tuple(await self._storage.list_records(RecordKind.INCOME)),
            expenses=tuple(await self._storage.list_records(RecordKind.EXPENSE)),
            private_expenses=tuple(
                await self._storage.list_records(RecordKind.PRIVATE_EXPENSE)
            ),
        )

    async def calculate(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> Calculation:
        """
        Run the engine on a fresh snapshot.

        Returns the snapshot, the results and the control diagnostic
        (None if the control check passed).
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            snapshot = await self.load_snapshot()
        except StorageError as e:
            await self._storage_failed("load_snapshot", e, correlation_id)
            raise

        results = compute_results(snapshot.settings, snapshot.expenses, snapshot.incomes)
        inconsistency = check_control(results, self._control_tolerance)

        await self._audit_logger.log_calculation(
            results.finale_ueberweisung_p1,
            results.finale_ueberweisung_p2,
            correlation_id,
        )
        if inconsistency is not None:
            await self._audit_logger.log_control_check_failed(
                inconsistency.expected,
                inconsistency.actual,
                correlation_id,
            )

        return Calculation(snapshot, results, inconsistency)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def update_settings(
        self,
        data: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> BudgetSettings:
        """Validate a (partial) settings update and upsert it."""
        try:
            current = await self._storage.get_settings()
        except StorageError as e:
            await self._storage_failed("get_settings", e, correlation_id)
            raise

        try:
            updated = self._validator.validate_settings(data, current)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                "settings", e.field, e.message, correlation_id
            )
            raise

        try:
            saved = await self._storage.upsert_settings(updated)
        except StorageError as e:
            await self._storage_failed("upsert_settings", e, correlation_id)
            raise
        await self._audit_logger.log_settings_updated(
            {key: getattr(saved, key) for key in data},
            correlation_id,
        )
        return saved

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def list_records(
        self,
        kind: RecordKind,
        correlation_id: Optional[UUID] = None,
    ) -> list:
        try:
            return await self._storage.list_records(kind)
        except StorageError as e:
            await self._storage_failed("list_records", e, correlation_id)
            raise

    async def create_record(
        self,
        kind: RecordKind,
        data: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ):
        """Validate raw input and store it as a new record."""
        try:
            record = self._validator.validate_record(kind, data)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                kind.value, e.field, e.message, correlation_id
            )
            raise

        try:
            saved = await self._storage.create_record(record)
        except StorageError as e:
            await self._storage_failed("create_record", e, correlation_id)
            raise
        await self._audit_logger.log_record_created(saved, correlation_id)
        return saved

    async def update_record(
        self,
        kind: RecordKind,
        record_id: UUID,
        data: Mapping[str, Any],
        correlation_id: Optional[UUID] = None,
    ):
        """
        Validate raw input and replace an existing record.

        Raises:
            ValidationError: Input rejected, nothing written
            NotFoundError: No record with that id
            StorageError: Backend failure (audited, then re-raised)
        """
        try:
            existing = await self._storage.get_record(kind, record_id)
        except StorageError as e:
            await self._storage_failed("get_record", e, correlation_id)
            raise
        if existing is None:
            await self._audit_logger.log_record_not_found(
                kind.value, record_id, "update", correlation_id
            )
            raise NotFoundError(kind, record_id)

        try:
            record = self._validator.validate_record(kind, data, existing)
        except ValidationError as e:
            await self._audit_logger.log_validation_failed(
                kind.value, e.field, e.message, correlation_id
            )
            raise

        try:
            saved = await self._storage.update_record(record)
        except NotFoundError:
            # Deleted between read and write
            await self._audit_logger.log_record_not_found(
                kind.value, record_id, "update", correlation_id
            )
            raise
        except StorageError as e:
            await self._storage_failed("update_record", e, correlation_id)
            raise

        await self._audit_logger.log_record_updated(saved, correlation_id)
        return saved

    async def delete_record(
        self,
        kind: RecordKind,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Delete a record; NotFoundError if it doesn't exist."""
        try:
            await self._storage.delete_record(kind, record_id)
        except NotFoundError:
            await self._audit_logger.log_record_not_found(
                kind.value, record_id, "delete", correlation_id
            )
            raise
        except StorageError as e:
            await self._storage_failed("delete_record", e, correlation_id)
            raise
        await self._audit_logger.log_record_deleted(kind.value, record_id, correlation_id)

    # Typed shortcuts used by the UI

    async def add_income(self, data: Mapping[str, Any], correlation_id: Optional[UUID] = None) -> Income:
        return await self.create_record(RecordKind.INCOME, data, correlation_id)

    async def update_income(self, record_id: UUID, data: Mapping[str, Any], correlation_id: Optional[UUID] = None) -> Income:
        return await self.update_record(RecordKind.INCOME, record_id, data, correlation_id)

    async def delete_income(self, record_id: UUID, correlation_id: Optional[UUID] = None) -> None:
        await self.delete_record(RecordKind.INCOME, record_id, correlation_id)

    async def add_expense(self, data: Mapping[str, Any], correlation_id: Optional[UUID] = None) -> Expense:
        return await self.create_record(RecordKind.EXPENSE, data, correlation_id)

    async def update_expense(self, record_id: UUID, data: Mapping[str, Any], correlation_id: Optional[UUID] = None) -> Expense:
        return await self.update_record(RecordKind.EXPENSE, record_id, data, correlation_id)

    async def delete_expense(self, record_id: UUID, correlation_id: Optional[UUID] = None) -> None:
        await self.delete_record(RecordKind.EXPENSE, record_id, correlation_id)

    async def add_private_expense(self, data: Mapping[str, Any], correlation_id: Optional[UUID] = None) -> PrivateExpense:
        return await self.create_record(RecordKind.PRIVATE_EXPENSE, data, correlation_id)

    async def update_private_expense(self, record_id: UUID, data: Mapping[str, Any], correlation_id: Optional[UUID] = None) -> PrivateExpense:
        return await self.update_record(RecordKind.PRIVATE_EXPENSE, record_id, data, correlation_id)

    async def delete_private_expense(self, record_id: UUID, correlation_id: Optional[UUID] = None) -> None:
        await self.delete_record(RecordKind.PRIVATE_EXPENSE, record_id, correlation_id)


def create_app_components(
    use_storage: Optional[bool] = None,
) -> tuple[BudgetService, AuditLogger]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use Google Sheets storage. Defaults to
                    the STORAGE_BACKEND setting. Falls back to in-memory
                    storage if Google Sheets is not configured.

    Returns:
        (budget_service, audit_logger)
    """
    if use_storage is None:
        use_storage = get_settings().app.storage_backend == "google_sheets"

    budget_storage: BudgetStorageInterface
    audit_storage: AuditStorageInterface

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            budget_storage = GoogleSheetsBudgetStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            budget_storage = InMemoryBudgetStorage()
            audit_storage = InMemoryAuditStorage()
    else:
        budget_storage = InMemoryBudgetStorage()
        audit_storage = InMemoryAuditStorage()

    audit_logger = AuditLogger(audit_storage)
    service = BudgetService(budget_storage, audit_logger=audit_logger)
    return service, audit_logger
