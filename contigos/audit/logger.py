"""
Audit Logger

DESIGN DECISION: Every change to household data is logged.
This provides:
1. Complete traceability of settings and record changes
2. A trail to follow when a control check fails
3. Both partners can see who changed what

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from contigos.models.audit import AuditEvent, AuditEventBuilder
from contigos.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_settings_updated(
        self,
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.settings_updated(changes, correlation_id))

    async def log_record_created(
        self,
        record,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log creation of an income, expense or private expense."""
        await self.log(AuditEventBuilder.record_created(
            entity_type=record.KIND.value,
            record_id=record.id,
            description=record.beschreibung,
            amount=record.betrag,
            correlation_id=correlation_id,
        ))

    async def log_record_updated(
        self,
        record,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_updated(
            entity_type=record.KIND.value,
            record_id=record.id,
            description=record.beschreibung,
            amount=record.betrag,
            correlation_id=correlation_id,
        ))

    async def log_record_deleted(
        self,
        entity_type: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_deleted(
            entity_type, record_id, correlation_id
        ))

    async def log_record_not_found(
        self,
        entity_type: str,
        record_id: UUID,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.record_not_found(
            entity_type, record_id, operation, correlation_id
        ))

    async def log_validation_failed(
        self,
        entity_type: str,
        field: Optional[str],
        message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log rejected input."""
        await self.log(AuditEventBuilder.validation_failed(
            entity_type, field, message, correlation_id
        ))

    async def log_calculation(
        self,
        transfer_p1: float,
        transfer_p2: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.calculation_completed(
            transfer_p1, transfer_p2, correlation_id
        ))

    async def log_control_check_failed(
        self,
        expected: float,
        actual: float,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed control check (needed deposit != sum of transfers)."""
        await self.log(AuditEventBuilder.control_check_failed(
            expected, actual, correlation_id
        ))

    async def log_login(
        self,
        succeeded: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.login_attempt(succeeded, correlation_id))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        operation: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed call to a storage backend or other external service."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            operation=operation,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a form submission).
    Pass it through all subsequent operations.
    """
    return uuid4()
