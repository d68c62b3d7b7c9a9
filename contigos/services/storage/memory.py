"""
In-Memory Storage

Process-local backend used for tests and for running the app without
Google Sheets. Data is lost when the process exits.
"""

from typing import Optional
from uuid import UUID

from contigos.models.audit import AuditEvent
from contigos.models.budget import BudgetSettings, RecordKind
from contigos.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    DuplicateError,
    NotFoundError,
)


class InMemoryBudgetStorage(BudgetStorageInterface):
    """Keeps settings and records in dicts keyed by ID."""

    def __init__(self, settings: Optional[BudgetSettings] = None):
        self._settings = settings
        self._records: dict[RecordKind, dict[UUID, object]] = {
            kind: {} for kind in RecordKind
        }

    async def get_settings(self) -> BudgetSettings:
        return self._settings or BudgetSettings()

    async def upsert_settings(self, settings: BudgetSettings) -> BudgetSettings:
        self._settings = settings
        return settings

    async def list_records(self, kind: RecordKind) -> list:
        return sorted(self._records[kind].values(), key=lambda r: r.created_at)

    async def get_record(self, kind: RecordKind, record_id: UUID):
        return self._records[kind].get(record_id)

    async def create_record(self, record):
        records = self._records[record.KIND]
        if record.id in records:
            raise DuplicateError(f"{record.KIND.value} already exists: {record.id}")
        records[record.id] = record
        return record

    async def update_record(self, record):
        records = self._records[record.KIND]
        if record.id not in records:
            raise NotFoundError(record.KIND, record.id)
        records[record.id] = record
        return record

    async def delete_record(self, kind: RecordKind, record_id: UUID) -> None:
        try:
            del self._records[kind][record_id]
        except KeyError:
            raise NotFoundError(kind, record_id)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
