"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Both partners can look at the raw numbers directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a household has a few dozen rows)
- No transactions (validation happens before any write, so a failed
  request never leaves half a record behind)
- Limited query capabilities (we filter in Python)

Layout: one worksheet per record kind, one row per record, plus a
settings worksheet holding a single row keyed by SETTINGS_ID.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from contigos.config import get_settings
from contigos.models.audit import AuditEvent, AuditEventType, AuditSeverity
from contigos.models.budget import (
    RECORD_TYPES,
    SETTINGS_ID,
    BudgetSettings,
    RecordKind,
)
from contigos.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
)


SETTINGS_COLUMNS = [
    "id",
    "restgeld_vormonat",
    "comida_betrag",
    "ahorros_betrag",
    "tagesgeldkonto_betrag",
    "gemeinschaftskonto_aktuell",
    "updated_at",
]

# The fourth column holds the attribution field of the record kind
RECORD_COLUMNS = {
    RecordKind.INCOME: ["id", "beschreibung", "betrag", "quelle", "created_at", "updated_at"],
    RecordKind.EXPENSE: ["id", "beschreibung", "betrag", "bezahlt_von", "created_at", "updated_at"],
    RecordKind.PRIVATE_EXPENSE: ["id", "beschreibung", "betrag", "person", "created_at", "updated_at"],
}

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

_write_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type((NotFoundError, DuplicateError)),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_settings_sheet(self) -> gspread.Worksheet:
        """Get or create the Settings worksheet."""
        return self._get_or_create(
            self._settings.settings_sheet_name, SETTINGS_COLUMNS, rows=10
        )

    def get_records_sheet(self, kind: RecordKind) -> gspread.Worksheet:
        """Get or create the worksheet for a record kind."""
        titles = {
            RecordKind.INCOME: self._settings.incomes_sheet_name,
            RecordKind.EXPENSE: self._settings.expenses_sheet_name,
            RecordKind.PRIVATE_EXPENSE: self._settings.private_expenses_sheet_name,
        }
        return self._get_or_create(titles[kind], RECORD_COLUMNS[kind], rows=1000)

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


def _safe_get(row: list, index: int, default: str = "") -> str:
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """
    Google Sheets implementation of household storage.

    Amounts are written with repr() so floats survive the round trip
    without losing precision.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _settings_to_row(settings: BudgetSettings) -> list:
        return [
            str(settings.id),
            repr(settings.restgeld_vormonat),
            repr(settings.comida_betrag),
            repr(settings.ahorros_betrag),
            repr(settings.tagesgeldkonto_betrag),
            repr(settings.gemeinschaftskonto_aktuell),
            settings.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_settings(row: list) -> BudgetSettings:
        fields = {
            name: float(_safe_get(row, index, "0"))
            for index, name in enumerate(SETTINGS_COLUMNS[1:6], start=1)
        }
        if _safe_get(row, 6):
            fields["updated_at"] = datetime.fromisoformat(_safe_get(row, 6))
        return BudgetSettings(id=int(_safe_get(row, 0, str(SETTINGS_ID))), **fields)

    @staticmethod
    def _record_to_row(record) -> list:
        attribution = RECORD_COLUMNS[record.KIND][3]
        return [
            str(record.id),
            record.beschreibung,
            repr(record.betrag),
            getattr(record, attribution).value,
            record.created_at.isoformat(),
            record.updated_at.isoformat(),
        ]

    @staticmethod
    def _row_to_record(kind: RecordKind, row: list):
        attribution = RECORD_COLUMNS[kind][3]
        return RECORD_TYPES[kind](**{
            "id": UUID(_safe_get(row, 0)),
            "beschreibung": _safe_get(row, 1),
            "betrag": float(_safe_get(row, 2)),
            attribution: _safe_get(row, 3),
            "created_at": datetime.fromisoformat(_safe_get(row, 4)),
            "updated_at": datetime.fromisoformat(_safe_get(row, 5)),
        })

    @staticmethod
    def _find_row(all_rows: list[list], record_id: UUID) -> Optional[int]:
        """1-based sheet row index of a record, skipping the header."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == str(record_id):
                return idx
        return None

    async def get_settings(self) -> BudgetSettings:
        """Read the settings row, or defaults if the sheet is still empty."""
        try:
            sheet = self._client.get_settings_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == str(SETTINGS_ID):
                    return self._row_to_settings(row)
            return BudgetSettings()
        except Exception as e:
            raise StorageError(f"Failed to get settings: {e}")

    @_write_retry
    async def upsert_settings(self, settings: BudgetSettings) -> BudgetSettings:
        """Replace the settings row, creating it on first save."""
        try:
            sheet = self._client.get_settings_sheet()
            row = self._settings_to_row(settings)
            all_rows = sheet.get_all_values()
            for idx, existing in enumerate(all_rows[1:], start=2):
                if existing and existing[0] == str(SETTINGS_ID):
                    sheet.update(values=[row], range_name=f"A{idx}")
                    return settings
            sheet.append_row(row, value_input_option="RAW")
            return settings
        except Exception as e:
            raise StorageError(f"Failed to save settings: {e}")

    async def list_records(self, kind: RecordKind) -> list:
        try:
            sheet = self._client.get_records_sheet(kind)
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise StorageError(f"Failed to list {kind.value} records: {e}")

        records = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            try:
                records.append(self._row_to_record(kind, row))
            except Exception:
                continue  # Skip malformed rows
        records.sort(key=lambda r: r.created_at)
        return records

    async def get_record(self, kind: RecordKind, record_id: UUID):
        try:
            sheet = self._client.get_records_sheet(kind)
            all_rows = sheet.get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to get {kind.value}: {e}")

        idx = self._find_row(all_rows, record_id)
        if idx is None:
            return None
        try:
            return self._row_to_record(kind, all_rows[idx - 1])
        except Exception as e:
            raise StorageError(f"Malformed {kind.value} row {idx}: {e}")

    @_write_retry
    async def create_record(self, record):
        try:
            sheet = self._client.get_records_sheet(record.KIND)
            if self._find_row(sheet.get_all_values(), record.id) is not None:
                raise DuplicateError(
                    f"{record.KIND.value} already exists: {record.id}"
                )
            sheet.append_row(self._record_to_row(record), value_input_option="RAW")
            return record
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {record.KIND.value}: {e}")

    @_write_retry
    async def update_record(self, record):
        try:
            sheet = self._client.get_records_sheet(record.KIND)
            idx = self._find_row(sheet.get_all_values(), record.id)
            if idx is None:
                raise NotFoundError(record.KIND, record.id)
            sheet.update(values=[self._record_to_row(record)], range_name=f"A{idx}")
            return record
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {record.KIND.value}: {e}")

    @_write_retry
    async def delete_record(self, kind: RecordKind, record_id: UUID) -> None:
        try:
            sheet = self._client.get_records_sheet(kind)
            idx = self._find_row(sheet.get_all_values(), record_id)
            if idx is None:
                raise NotFoundError(kind, record_id)
            sheet.delete_rows(idx)
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {kind.value}: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._logger = structlog.get_logger()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_safe_get(row, 0)),
            timestamp=datetime.fromisoformat(_safe_get(row, 1)),
            event_type=AuditEventType(_safe_get(row, 2)),
            severity=AuditSeverity(_safe_get(row, 3)),
            entity_type=_safe_get(row, 4) or None,
            entity_id=UUID(_safe_get(row, 5)) if _safe_get(row, 5) else None,
            correlation_id=UUID(_safe_get(row, 6)) if _safe_get(row, 6) else None,
            description=_safe_get(row, 7),
            details=json.loads(_safe_get(row, 8)) if _safe_get(row, 8) else {},
            error_message=_safe_get(row, 9) or None,
            is_user_action=_safe_get(row, 10).lower() == "true",
        )

    def _read_events(self, matches) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events = []
        for row in all_rows:
            if row and row[0] and matches(row):
                try:
                    events.append(self._row_to_event(row))
                except Exception:
                    continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break the main flow
            self._logger.warning(
                "audit_append_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = self._read_events(
            lambda row: len(row) > 6 and row[6] == str(correlation_id)
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = self._read_events(
            lambda row: len(row) > 5 and row[4] == entity_type and row[5] == str(entity_id)
        )
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        events = self._read_events(lambda row: True)
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
