"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep the allocation engine decoupled from storage entirely

The engine never talks to storage. The service layer reads a snapshot
from here, hands it to the engine and writes validated records back.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from contigos.models.budget import BudgetSettings, RecordKind
from contigos.models.audit import AuditEvent


class BudgetStorageInterface(ABC):
    """
    Abstract interface for household data.

    Any storage implementation (Google Sheets, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def get_settings(self) -> BudgetSettings:
        """
        Retrieve the settings record.

        Returns:
            The stored settings, or default settings if none were saved yet
        """
        pass

    @abstractmethod
    async def upsert_settings(self, settings: BudgetSettings) -> BudgetSettings:
        """
        Store the settings record under its fixed key.

        Creates the record if missing, replaces it otherwise.
        """
        pass

    @abstractmethod
    async def list_records(self, kind: RecordKind) -> list:
        """
        List all records of a kind, oldest first.

        Args:
            kind: Which record list to read
        """
        pass

    @abstractmethod
    async def get_record(self, kind: RecordKind, record_id: UUID):
        """
        Retrieve a record by its ID.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def create_record(self, record):
        """
        Save a new record.

        Raises:
            DuplicateError: If a record with that ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_record(self, record):
        """
        Replace an existing record.

        Raises:
            NotFoundError: If the record doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_record(self, kind: RecordKind, record_id: UUID) -> None:
        """
        Delete a record by ID.

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one form submission).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""

    def __init__(self, kind: RecordKind, record_id: UUID):
        super().__init__(f"{kind.value} not found: {record_id}")
        self.kind = kind
        self.record_id = record_id


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
