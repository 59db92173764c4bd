"""
In-Memory Storage Implementation

Used for tests, demos and anonymous sessions. The backend is a dict of
JSON-mode documents (exactly what would be written to the remote store);
after each successful write the store pushes a fresh snapshot decoded from
those documents, so the read path is identical to the Google Sheets store.
"""

from typing import Any, Iterable, Optional

import structlog

from vaultly.models.audit import AuditEvent
from vaultly.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    RecordStore,
    RecordT,
)

logger = structlog.get_logger(__name__)


class InMemoryRecordStore(RecordStore[RecordT]):
    """
    Dict-backed record store.

    Args:
        collection: Collection name, e.g. 'goals'
        record_type: Pydantic record class of the collection
        initial: Records to seed the backend with
        read_only: Reject every write with PermissionDeniedError
            (the store of an unauthenticated session)
    """

    def __init__(
        self,
        collection: str,
        record_type: type[RecordT],
        initial: Iterable[RecordT] = (),
        read_only: bool = False,
    ):
        super().__init__(collection, record_type)
        self._read_only = read_only
        self._documents: dict[str, dict[str, Any]] = {
            record.id: record.to_document() for record in initial
        }
        self._push()

    def _check_writable(self) -> None:
        if self._read_only:
            raise PermissionDeniedError(f"Writes to {self.collection} require a signed-in user")

    def _push(self) -> None:
        self.replace_snapshot(
            self.record_type.model_validate(document) for document in self._documents.values()
        )

    async def add(self, record: RecordT) -> str:
        self._check_writable()
        if record.id in self._documents:
            raise DuplicateError(f"{self.collection} record already exists: {record.id}")
        self._documents[record.id] = record.to_document()
        logger.debug("record_added", collection=self.collection, record_id=record.id)
        self._push()
        return record.id

    async def update(self, record_id: str, changes: dict[str, Any]) -> None:
        self._check_writable()
        if record_id not in self._documents:
            raise NotFoundError(f"{self.collection} record not found: {record_id}")
        self._documents[record_id] = self.merged(record_id, changes).to_document()
        logger.debug("record_updated", collection=self.collection, record_id=record_id)
        self._push()

    async def remove(self, record_id: str) -> None:
        self._check_writable()
        if self._documents.pop(record_id, None) is None:
            raise NotFoundError(f"{self.collection} record not found: {record_id}")
        logger.debug("record_removed", collection=self.collection, record_id=record_id)
        self._push()

    async def refresh(self) -> None:
        self._push()

    def document(self, record_id: str) -> Optional[dict[str, Any]]:
        """The raw stored document, as the remote store would hold it."""
        return self._documents.get(record_id)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_events_by_correlation_id(self, correlation_id) -> list[AuditEvent]:
        related = [e for e in self.events if e.correlation_id == correlation_id]
        return sorted(related, key=lambda e: e.timestamp)

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return sorted(self.events, key=lambda e: e.timestamp, reverse=True)[:limit]
