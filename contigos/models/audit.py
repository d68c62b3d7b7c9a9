"""
Audit Models for Contigos

Every change to the household data is logged for audit purposes.
This provides:
1. Traceability of who changed which record
2. Debugging information when a control check fails
3. Ability to reconstruct how a month's transfers came about

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Settings
    SETTINGS_UPDATED = "settings_updated"

    # Records
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    RECORD_NOT_FOUND = "record_not_found"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Calculation
    CALCULATION_COMPLETED = "calculation_completed"
    CONTROL_CHECK_FAILED = "control_check_failed"

    # Access
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"

    # System events
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'income', 'expense', 'settings')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one form submission)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created("income", income_id, "Gehalt", 2215.0)
        event = AuditEventBuilder.control_check_failed(expected, actual, correlation_id)
    """

    @staticmethod
    def settings_updated(
        changes: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTINGS_UPDATED,
            entity_type="settings",
            correlation_id=correlation_id,
            description=f"Settings updated ({len(changes)} fields)",
            details=changes,
            is_user_action=True,
        )

    @staticmethod
    def record_created(
        entity_type: str,
        record_id: UUID,
        description: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type=entity_type,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"{entity_type} created: {description} - {amount:.2f} EUR",
            details={
                "beschreibung": description,
                "betrag": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        entity_type: str,
        record_id: UUID,
        description: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type=entity_type,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"{entity_type} updated: {description} - {amount:.2f} EUR",
            details={
                "beschreibung": description,
                "betrag": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        entity_type: str,
        record_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            entity_type=entity_type,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"{entity_type} deleted",
            is_user_action=True,
        )

    @staticmethod
    def record_not_found(
        entity_type: str,
        record_id: UUID,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_NOT_FOUND,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Cannot {operation} {entity_type}: record not found",
            details={"operation": operation},
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        field: Optional[str],
        message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Input for {entity_type} rejected",
            details={
                "field": field,
                "message": message,
            },
            is_user_action=True,
        )

    @staticmethod
    def calculation_completed(
        transfer_p1: float,
        transfer_p2: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CALCULATION_COMPLETED,
            severity=AuditSeverity.DEBUG,
            entity_type="calculation",
            correlation_id=correlation_id,
            description="Transfers calculated",
            details={
                "finale_ueberweisung_p1": transfer_p1,
                "finale_ueberweisung_p2": transfer_p2,
            },
        )

    @staticmethod
    def control_check_failed(
        expected: float,
        actual: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONTROL_CHECK_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="calculation",
            correlation_id=correlation_id,
            description="Needed deposit does not match the sum of transfers",
            details={
                "kontrolle_einzahlung_noetig": expected,
                "kontrolle_summe_ueberweisungen": actual,
                "difference": expected - actual,
            },
        )

    @staticmethod
    def login_attempt(
        succeeded: bool,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        if succeeded:
            return AuditEvent(
                event_type=AuditEventType.LOGIN_SUCCEEDED,
                entity_type="session",
                correlation_id=correlation_id,
                description="Login succeeded",
                is_user_action=True,
            )
        return AuditEvent(
            event_type=AuditEventType.LOGIN_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            correlation_id=correlation_id,
            description="Login failed: incorrect password",
            is_user_action=True,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        operation: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
