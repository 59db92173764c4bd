"""
Per-User Repository Bundle

One RecordStore per collection, all scoped to the same user identity.
Without an identity the bundle is empty and read-only.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from vaultly.models.records import (
    Credit,
    Fund,
    Goal,
    Project,
    ScheduledTransaction,
    Transaction,
)
from vaultly.services.storage.google_sheets import GoogleSheetsClient, GoogleSheetsRecordStore
from vaultly.services.storage.interface import RecordStore
from vaultly.services.storage.memory import InMemoryRecordStore

COLLECTIONS = {
    "transactions": Transaction,
    "goals": Goal,
    "funds": Fund,
    "credits": Credit,
    "projects": Project,
    "scheduled": ScheduledTransaction,
}


@dataclass(frozen=True)
class FinanceSnapshot:
    """A consistent read of every collection at one instant."""

    transactions: list[Transaction]
    goals: list[Goal]
    funds: list[Fund]
    credits: list[Credit]
    projects: list[Project]
    scheduled: list[ScheduledTransaction]


@dataclass
class FinanceRepositories:
    """The record stores of one user."""

    transactions: RecordStore[Transaction]
    goals: RecordStore[Goal]
    funds: RecordStore[Fund]
    credits: RecordStore[Credit]
    projects: RecordStore[Project]
    scheduled: RecordStore[ScheduledTransaction]
    user_id: Optional[str] = None

    def stores(self) -> list[RecordStore]:
        return [getattr(self, name) for name in COLLECTIONS]

    def snapshot(self) -> FinanceSnapshot:
        return FinanceSnapshot(**{name: getattr(self, name).list() for name in COLLECTIONS})

    @property
    def loading(self) -> bool:
        return any(store.loading for store in self.stores())

    async def refresh_all(self) -> None:
        for store in self.stores():
            await store.refresh()

    @classmethod
    def in_memory(
        cls,
        user_id: Optional[str] = "local",
        transactions: Iterable[Transaction] = (),
        goals: Iterable[Goal] = (),
        funds: Iterable[Fund] = (),
        credits: Iterable[Credit] = (),
        projects: Iterable[Project] = (),
        scheduled: Iterable[ScheduledTransaction] = (),
    ) -> "FinanceRepositories":
        """In-memory stores seeded with fixture records."""
        seeds = {
            "transactions": transactions,
            "goals": goals,
            "funds": funds,
            "credits": credits,
            "projects": projects,
            "scheduled": scheduled,
        }
        read_only = user_id is None
        stores = {
            name: InMemoryRecordStore(name, record_type, seeds[name], read_only=read_only)
            for name, record_type in COLLECTIONS.items()
        }
        return cls(user_id=user_id, **stores)

    @classmethod
    def anonymous(cls) -> "FinanceRepositories":
        """No identity: every collection empty, every write denied."""
        return cls.in_memory(user_id=None)

    @classmethod
    def google_sheets(cls, user_id: str, client=None) -> "FinanceRepositories":
        """Stores backed by one worksheet per collection, filtered to `user_id`."""
        client = client or GoogleSheetsClient()
        stores = {
            name: GoogleSheetsRecordStore(name, record_type, user_id, client=client)
            for name, record_type in COLLECTIONS.items()
        }
        return cls(user_id=user_id, **stores)
