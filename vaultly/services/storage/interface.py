"""
Abstract Storage Interface

DESIGN DECISION: Every collection (transactions, goals, funds, credits,
projects, scheduled) is a RecordStore. A store has two halves:

1. Writes (`add`, `update`, `remove`) go to the backing document store and
   raise a typed StorageError on failure.
2. Reads (`list`, `get`) come from an in-memory snapshot that is only ever
   replaced wholesale, by `replace_snapshot`, when the backend pushes the
   current state of the collection.

A failed write therefore never touches the snapshot: there is no optimistic
local mutation to roll back. The engine reads snapshots and never writes.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

from vaultly.models.audit import AuditEvent
from vaultly.models.records import Record

RecordT = TypeVar("RecordT", bound=Record)

SnapshotListener = Callable[[list, bool], None]


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Record not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a record whose id already exists."""
    pass


class PermissionDeniedError(StorageError):
    """The current identity may not write to this collection."""
    pass


class StoreUnavailableError(StorageError):
    """Could not reach the storage backend. Safe to retry."""
    pass


class RecordStore(ABC, Generic[RecordT]):
    """
    One collection of records, scoped to a single user.

    Subclasses implement the three writes and `refresh`. The snapshot,
    loading flag and subscriptions are shared.
    """

    def __init__(self, collection: str, record_type: type[RecordT]):
        self.collection = collection
        self.record_type = record_type
        self._snapshot: list[RecordT] = []
        self._loading = True
        self._listeners: list[SnapshotListener] = []

    @abstractmethod
    async def add(self, record: RecordT) -> str:
        """
        Persist a new record.

        Returns:
            The record's id

        Raises:
            DuplicateError: If the id already exists
            PermissionDeniedError: If writes are not allowed
            StoreUnavailableError: If the backend cannot be reached
        """
        pass

    @abstractmethod
    async def update(self, record_id: str, changes: dict[str, Any]) -> None:
        """
        Apply a partial update (snake_case field names) to a record.

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass

    @abstractmethod
    async def remove(self, record_id: str) -> None:
        """
        Delete a record.

        Raises:
            NotFoundError: If the record doesn't exist
        """
        pass

    @abstractmethod
    async def refresh(self) -> None:
        """Pull the full collection from the backend and replace the snapshot."""
        pass

    # Snapshot side

    def list(self) -> list[RecordT]:
        """Records of the current snapshot, in insertion order."""
        return list(self._snapshot)

    def get(self, record_id: str) -> Optional[RecordT]:
        for record in self._snapshot:
            if record.id == record_id:
                return record
        return None

    def require(self, record_id: str) -> RecordT:
        record = self.get(record_id)
        if record is None:
            raise NotFoundError(f"{self.collection} record not found: {record_id}")
        return record

    @property
    def loading(self) -> bool:
        """True until the first snapshot has been delivered."""
        return self._loading

    def replace_snapshot(self, records: Iterable[RecordT]) -> None:
        """Swap in a complete new snapshot and notify subscribers."""
        self._snapshot = list(records)
        self._loading = False
        for listener in list(self._listeners):
            listener(self.list(), self._loading)

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register for `(records, loading)` on every snapshot replace.

        The listener is called immediately with the current state.
        Returns a function that removes the subscription.
        """
        self._listeners.append(listener)
        listener(self.list(), self._loading)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def merged(self, record_id: str, changes: dict[str, Any]) -> RecordT:
        """The existing record with `changes` applied and re-validated."""
        existing = self.require(record_id)
        data = existing.model_dump()
        data.update({key: value for key, value in changes.items() if key != "id"})
        return self.record_type.model_validate(data)


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
    async def get_events_by_correlation_id(self, correlation_id) -> list[AuditEvent]:
        """All events of one flow, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass
