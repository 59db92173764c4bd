"""
Tests for the record stores.

The Google Sheets store runs against an in-process fake worksheet; gspread
itself is never called.
"""

import json
import re
from datetime import date
from unittest.mock import Mock

import gspread
import pytest
from tenacity import wait_none

from vaultly.models.audit import AuditEvent, AuditEventType
from vaultly.models.records import Goal, Transaction, TransactionType
from vaultly.services.storage import (
    DuplicateError,
    FinanceRepositories,
    GoogleSheetsAuditStorage,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
    StoreUnavailableError,
)
from vaultly.services.storage.google_sheets import RECORD_COLUMNS, translate_errors


def make_goal(**kwargs):
    return Goal(name="Viaje", target_amount=1200, start_date=date(2025, 1, 1), **kwargs)


def api_error(status: int) -> gspread.exceptions.APIError:
    response = Mock()
    response.status_code = status
    response.json.return_value = {"error": {"code": status, "message": "boom", "status": "ERROR"}}
    return gspread.exceptions.APIError(response)


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the record store."""

    def __init__(self, rows=None):
        self.rows = [list(RECORD_COLUMNS)] + (rows or [])
        self.fail_appends = []
        self.fail_reads = []
        self.fail_reads_after_write = []

    def _written(self):
        self.fail_reads += self.fail_reads_after_write
        self.fail_reads_after_write = []

    def get_all_values(self):
        if self.fail_reads:
            raise self.fail_reads.pop(0)
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        if self.fail_appends:
            raise self.fail_appends.pop(0)
        self.rows.append(list(row))
        self._written()

    def update(self, range_name, values):
        index = int(re.match(r"A(\d+):", range_name).group(1))
        self.rows[index - 1] = list(values[0])
        self._written()

    def delete_rows(self, index):
        del self.rows[index - 1]
        self._written()


@pytest.fixture
def worksheet():
    return FakeWorksheet()


@pytest.fixture
def sheets_client(worksheet):
    client = Mock()
    client.get_collection_sheet.return_value = worksheet
    client.get_audit_sheet.return_value = worksheet
    return client


@pytest.fixture
def no_retry_wait(monkeypatch):
    for name in ("_append", "_rewrite", "_delete", "refresh"):
        monkeypatch.setattr(getattr(GoogleSheetsRecordStore, name).retry, "wait", wait_none())


class TestInMemoryRecordStore:
    """Tests for the dict-backed store."""

    @pytest.mark.asyncio
    async def test_add_and_read_snapshot(self):
        store = InMemoryRecordStore("goals", Goal)
        goal = make_goal()
        assert await store.add(goal) == goal.id
        assert store.get(goal.id) == goal
        assert store.list() == [goal]
        assert store.loading is False

    @pytest.mark.asyncio
    async def test_documents_are_camel_case(self):
        store = InMemoryRecordStore("goals", Goal)
        goal = make_goal()
        await store.add(goal)
        assert store.document(goal.id)["targetAmount"] == 1200

    @pytest.mark.asyncio
    async def test_duplicate_add_rejected(self):
        goal = make_goal()
        store = InMemoryRecordStore("goals", Goal, [goal])
        with pytest.raises(DuplicateError):
            await store.add(goal)

    @pytest.mark.asyncio
    async def test_update_merges_changes(self):
        goal = make_goal()
        store = InMemoryRecordStore("goals", Goal, [goal])
        await store.update(goal.id, {"current_amount": 300, "id": "ignored"})

        updated = store.require(goal.id)
        assert updated.current_amount == 300
        assert updated.name == "Viaje"

    @pytest.mark.asyncio
    async def test_missing_records(self):
        store = InMemoryRecordStore("goals", Goal)
        with pytest.raises(NotFoundError):
            await store.update("nope", {"name": "x"})
        with pytest.raises(NotFoundError):
            await store.remove("nope")
        with pytest.raises(NotFoundError):
            store.require("nope")
        assert store.get("nope") is None

    @pytest.mark.asyncio
    async def test_remove(self):
        goal = make_goal()
        store = InMemoryRecordStore("goals", Goal, [goal])
        await store.remove(goal.id)
        assert store.list() == []

    @pytest.mark.asyncio
    async def test_read_only_store_rejects_writes(self):
        store = InMemoryRecordStore("goals", Goal, read_only=True)
        with pytest.raises(PermissionDeniedError):
            await store.add(make_goal())
        assert store.list() == []

    @pytest.mark.asyncio
    async def test_subscribe_receives_snapshots(self):
        store = InMemoryRecordStore("goals", Goal)
        received = []
        unsubscribe = store.subscribe(lambda records, loading: received.append((len(records), loading)))

        await store.add(make_goal())
        unsubscribe()
        await store.add(make_goal())

        assert received == [(0, False), (1, False)]

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self):
        store = InMemoryRecordStore("goals", Goal, [make_goal()])
        store.list().clear()
        assert len(store.list()) == 1


class TestFinanceRepositories:
    """Tests for the per-user store bundle."""

    def test_in_memory_seeding(self):
        tx = Transaction(amount=10, type=TransactionType.INCOME, date=date(2025, 3, 1))
        repos = FinanceRepositories.in_memory("u1", transactions=[tx])

        snapshot = repos.snapshot()
        assert snapshot.transactions == [tx]
        assert snapshot.goals == []
        assert repos.loading is False
        assert len(repos.stores()) == 6

    @pytest.mark.asyncio
    async def test_anonymous_is_empty_and_read_only(self):
        repos = FinanceRepositories.anonymous()
        assert repos.user_id is None
        with pytest.raises(PermissionDeniedError):
            await repos.transactions.add(
                Transaction(amount=10, type=TransactionType.INCOME, date=date(2025, 3, 1))
            )

    def test_google_sheets_bundle_starts_loading(self, sheets_client):
        repos = FinanceRepositories.google_sheets("u1", sheets_client)
        assert repos.loading is True
        assert repos.user_id == "u1"


class TestErrorTranslation:
    """Tests for mapping gspread failures onto storage errors."""

    @pytest.mark.parametrize("status", [401, 403])
    def test_permission_errors(self, status):
        def call():
            raise api_error(status)

        with pytest.raises(PermissionDeniedError):
            translate_errors("read", call)

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_transient_errors(self, status):
        def call():
            raise api_error(status)

        with pytest.raises(StoreUnavailableError):
            translate_errors("read", call)

    def test_network_errors(self):
        def call():
            raise ConnectionError("reset")

        with pytest.raises(StoreUnavailableError):
            translate_errors("read", call)

    def test_success_passes_through(self):
        assert translate_errors("read", lambda: 42) == 42


class TestGoogleSheetsRecordStore:
    """Tests for the Google Sheets store over a fake worksheet."""

    @pytest.mark.asyncio
    async def test_refresh_filters_by_user(self, sheets_client, worksheet):
        mine, theirs = make_goal(), make_goal()
        worksheet.rows += [
            [mine.id, "u1", "", json.dumps(mine.to_document())],
            [theirs.id, "u2", "", json.dumps(theirs.to_document())],
        ]
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)
        assert store.loading is True

        await store.refresh()

        assert store.loading is False
        assert store.list() == [mine]

    @pytest.mark.asyncio
    async def test_add_update_remove(self, sheets_client, worksheet):
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)
        goal = make_goal()

        await store.add(goal)
        assert worksheet.rows[1][:2] == [goal.id, "u1"]
        assert json.loads(worksheet.rows[1][3])["targetAmount"] == 1200

        await store.update(goal.id, {"current_amount": 250})
        assert store.require(goal.id).current_amount == 250

        await store.remove(goal.id)
        assert store.list() == []
        assert len(worksheet.rows) == 1

    @pytest.mark.asyncio
    async def test_duplicate_and_missing(self, sheets_client):
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)
        goal = make_goal()
        await store.add(goal)

        with pytest.raises(DuplicateError):
            await store.add(goal)
        with pytest.raises(NotFoundError):
            await store.update("nope", {"name": "x"})

    @pytest.mark.asyncio
    async def test_transient_failures_are_retried(self, sheets_client, worksheet, no_retry_wait):
        worksheet.fail_appends = [api_error(503), api_error(503)]
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)

        goal = make_goal()
        await store.add(goal)

        assert store.list() == [goal]

    @pytest.mark.asyncio
    async def test_retries_give_up(self, sheets_client, worksheet, no_retry_wait):
        worksheet.fail_appends = [api_error(503)] * 3
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)

        with pytest.raises(StoreUnavailableError):
            await store.add(make_goal())
        assert store.list() == []

    @pytest.mark.asyncio
    async def test_permission_denied_is_not_retried(self, sheets_client, worksheet, no_retry_wait):
        worksheet.fail_appends = [api_error(403), api_error(403)]
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)

        with pytest.raises(PermissionDeniedError):
            await store.add(make_goal())
        assert len(worksheet.fail_appends) == 1

    @pytest.mark.asyncio
    async def test_add_is_not_repeated_when_refresh_fails(self, sheets_client, worksheet, no_retry_wait):
        worksheet.fail_reads_after_write = [ConnectionError("reset")] * 3
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)
        goal = make_goal()

        assert await store.add(goal) == goal.id

        assert len(worksheet.rows) == 2
        assert worksheet.fail_reads == []
        assert store.list() == [goal]

    @pytest.mark.asyncio
    async def test_update_and_remove_survive_failed_refresh(self, sheets_client, worksheet, no_retry_wait):
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)
        goal, other = make_goal(), make_goal()
        await store.add(goal)
        await store.add(other)

        worksheet.fail_reads_after_write = [api_error(503)] * 3
        await store.update(goal.id, {"current_amount": 250})
        assert store.require(goal.id).current_amount == 250
        assert json.loads(worksheet.rows[1][3])["currentAmount"] == 250

        worksheet.fail_reads_after_write = [api_error(503)] * 3
        await store.remove(other.id)
        assert [record.id for record in store.list()] == [goal.id]
        assert len(worksheet.rows) == 2

    @pytest.mark.asyncio
    async def test_next_refresh_replaces_patched_snapshot(self, sheets_client, worksheet, no_retry_wait):
        store = GoogleSheetsRecordStore("goals", Goal, "u1", client=sheets_client)
        worksheet.fail_reads_after_write = [api_error(503)] * 3
        goal = make_goal()
        await store.add(goal)

        del worksheet.rows[1]
        await store.refresh()

        assert store.list() == []


class TestGoogleSheetsAuditStorage:
    """Tests for the audit sheet."""

    @pytest.mark.asyncio
    async def test_append_and_read_back(self, sheets_client, worksheet):
        storage = GoogleSheetsAuditStorage(sheets_client)
        event = AuditEvent(
            event_type=AuditEventType.FUND_DEPOSIT,
            description="Fund deposit of 10.00",
            details={"amount": 10.0},
        )

        assert await storage.append_event(event) is True
        recent = await storage.get_recent_events()

        assert len(recent) == 1
        assert recent[0].event_id == event.event_id
        assert recent[0].details == {"amount": 10.0}

    @pytest.mark.asyncio
    async def test_write_failure_returns_false(self, sheets_client):
        sheets_client.get_audit_sheet.side_effect = StorageError("no sheet")
        storage = GoogleSheetsAuditStorage(sheets_client)
        event = AuditEvent(event_type=AuditEventType.SYSTEM_ERROR, description="x")

        assert await storage.append_event(event) is False
