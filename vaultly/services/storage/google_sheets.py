"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the remote document store because:
1. Users can view (and back up) their own data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

Each collection lives in its own worksheet with one document per row:

    id | user_id | updated_at | document (camelCase JSON)

Storing the whole record as JSON keeps the persisted shapes exactly the
record models' wire shape, nested histories included, so they round-trip
without a column mapping per field.

TRADEOFFS:
- No multi-row transactions. Cross-collection flows are sequential writes
  (see orchestrator.py).
- Every read pulls the full worksheet and filters by user in Python.
"""

import json
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from vaultly.config import get_settings
from vaultly.config.settings import GoogleSheetsSettings
from vaultly.models.audit import AuditEvent, AuditEventType, AuditSeverity
from vaultly.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    RecordStore,
    RecordT,
    StorageError,
    StoreUnavailableError,
)

logger = structlog.get_logger(__name__)

T = TypeVar("T")

# Column layout of every collection sheet
RECORD_COLUMNS = ["id", "user_id", "updated_at", "document"]

# Column layout of the audit sheet
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

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# Only transient failures are retried; permission errors surface immediately
sheets_retry = retry(
    retry=retry_if_exception_type(StoreUnavailableError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def translate_errors(operation: str, call: Callable[[], T]) -> T:
    """
    Run a gspread call, mapping its failures onto the storage errors.

    403/401 become PermissionDeniedError; other API errors and network
    failures become StoreUnavailableError.
    """
    try:
        return call()
    except gspread.exceptions.APIError as e:
        status = e.response.status_code
        if status in (401, 403):
            raise PermissionDeniedError(f"Permission denied during {operation}: {e}") from e
        raise StoreUnavailableError(f"Google Sheets error during {operation} ({status}): {e}") from e
    except OSError as e:
        raise StoreUnavailableError(f"Google Sheets unreachable during {operation}: {e}") from e


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup/creation.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @sheets_retry
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
            except FileNotFoundError:
                raise StorageError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            self._client = translate_errors("authorize", lambda: gspread.authorize(credentials))

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = translate_errors(
                    "open spreadsheet",
                    lambda: client.open_by_key(self._settings.spreadsheet_id),
                )
            except gspread.SpreadsheetNotFound:
                raise StorageError(f"Spreadsheet not found: {self._settings.spreadsheet_id}")
        return self._spreadsheet

    def get_sheet(self, title: str, columns: list[str], rows: int = 1000) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header row on creation."""
        spreadsheet = self.get_spreadsheet()
        try:
            return translate_errors("open worksheet", lambda: spreadsheet.worksheet(title))
        except gspread.WorksheetNotFound:
            sheet = translate_errors(
                "create worksheet",
                lambda: spreadsheet.add_worksheet(title=title, rows=rows, cols=len(columns)),
            )
            translate_errors("write header", lambda: sheet.append_row(columns))
            return sheet

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        return self.get_sheet(self._settings.sheet_name_for(collection), RECORD_COLUMNS)

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_sheet(self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000)


class GoogleSheetsRecordStore(RecordStore[RecordT]):
    """
    Google Sheets implementation of a record store.

    Every successful write is followed by a refresh, which re-reads the
    worksheet and replaces the snapshot. A failed write raises before the
    refresh, leaving the snapshot untouched. Only the sheet writes are
    retried; a write that landed is never sent twice.
    """

    def __init__(
        self,
        collection: str,
        record_type: type[RecordT],
        user_id: str,
        client: Optional[GoogleSheetsClient] = None,
    ):
        super().__init__(collection, record_type)
        self._user_id = user_id
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_collection_sheet(self.collection)

    def _record_to_row(self, record: RecordT) -> list[str]:
        return [
            record.id,
            self._user_id,
            datetime.now().isoformat(),
            json.dumps(record.to_document(), ensure_ascii=False),
        ]

    def _row_to_record(self, row: list[str]) -> RecordT:
        return self.record_type.model_validate(json.loads(row[3]))

    def _user_rows(self, sheet: gspread.Worksheet) -> list[tuple[int, list[str]]]:
        """(1-based row index, row) of this user's documents, header skipped."""
        all_rows = translate_errors(f"read {self.collection}", sheet.get_all_values)
        return [
            (index, row)
            for index, row in enumerate(all_rows[1:], start=2)
            if len(row) >= 4 and row[0] and row[1] == self._user_id
        ]

    def _find_row(self, sheet: gspread.Worksheet, record_id: str) -> Optional[tuple[int, list[str]]]:
        for index, row in self._user_rows(sheet):
            if row[0] == record_id:
                return index, row
        return None

    @sheets_retry
    async def _append(self, record: RecordT) -> None:
        sheet = self._sheet()
        if self._find_row(sheet, record.id) is not None:
            raise DuplicateError(f"{self.collection} record already exists: {record.id}")
        row = self._record_to_row(record)
        translate_errors(
            f"add to {self.collection}",
            lambda: sheet.append_row(row, value_input_option="RAW"),
        )

    @sheets_retry
    async def _rewrite(self, record_id: str, changes: dict[str, Any]) -> RecordT:
        sheet = self._sheet()
        found = self._find_row(sheet, record_id)
        if found is None:
            raise NotFoundError(f"{self.collection} record not found: {record_id}")
        index, row = found
        current = self._row_to_record(row)
        data = current.model_dump()
        data.update({key: value for key, value in changes.items() if key != "id"})
        updated = self.record_type.model_validate(data)
        new_row = self._record_to_row(updated)
        translate_errors(
            f"update {self.collection}",
            lambda: sheet.update(range_name=f"A{index}:D{index}", values=[new_row]),
        )
        return updated

    @sheets_retry
    async def _delete(self, record_id: str) -> None:
        sheet = self._sheet()
        found = self._find_row(sheet, record_id)
        if found is None:
            raise NotFoundError(f"{self.collection} record not found: {record_id}")
        index, _ = found
        translate_errors(f"remove from {self.collection}", lambda: sheet.delete_rows(index))

    async def _refresh_after_write(self, expected: list[RecordT]) -> None:
        """
        Re-read the worksheet after a write that already landed.

        The write is not repeated if the read fails; the snapshot is patched
        locally instead and corrected by the next successful refresh.
        """
        try:
            await self.refresh()
        except StorageError as e:
            logger.warning("refresh_after_write_failed", collection=self.collection, error=str(e))
            self.replace_snapshot(expected)

    async def add(self, record: RecordT) -> str:
        await self._append(record)
        logger.info("record_added", collection=self.collection, record_id=record.id)
        await self._refresh_after_write([*self.list(), record])
        return record.id

    async def update(self, record_id: str, changes: dict[str, Any]) -> None:
        updated = await self._rewrite(record_id, changes)
        logger.info("record_updated", collection=self.collection, record_id=record_id)
        await self._refresh_after_write([
            updated if record.id == record_id else record for record in self.list()
        ])

    async def remove(self, record_id: str) -> None:
        await self._delete(record_id)
        logger.info("record_removed", collection=self.collection, record_id=record_id)
        await self._refresh_after_write([
            record for record in self.list() if record.id != record_id
        ])

    @sheets_retry
    async def refresh(self) -> None:
        sheet = self._sheet()
        self.replace_snapshot(self._row_to_record(row) for _, row in self._user_rows(sheet))


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=safe_get(5) or None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        rows = translate_errors("read audit log", sheet.get_all_values)[1:]
        return [self._row_to_event(row) for row in rows if row and row[0]]

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Failures are logged, never raised."""
        try:
            sheet = self._client.get_audit_sheet()
            row = event.to_sheets_row()
            translate_errors(
                "append audit event",
                lambda: sheet.append_row(row, value_input_option="RAW"),
            )
            return True
        except StorageError as e:
            # Audit logging should not break the main flow
            logger.warning("audit_write_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(self, correlation_id) -> list[AuditEvent]:
        events = [e for e in self._all_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = self._all_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
