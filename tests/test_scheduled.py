"""Tests for recurring transactions."""

from datetime import date, datetime

import pytest

from vaultly.engine.scheduled import due_scheduled, is_due, mark_processed, to_transaction
from vaultly.models.records import ScheduledTransaction, TransactionType

TODAY = date(2025, 3, 15)


def netflix(**kwargs):
    return ScheduledTransaction(
        amount=12.99,
        type=TransactionType.EXPENSE,
        category="Suscripciones",
        description="Netflix",
        day_of_month=kwargs.pop("day_of_month", 10),
        created_at=datetime(2025, 1, 1),
        **kwargs,
    )


class TestDueness:
    """Tests for is_due."""

    def test_due_when_day_reached(self):
        assert is_due(netflix(), TODAY)

    def test_not_due_before_day(self):
        assert not is_due(netflix(day_of_month=20), TODAY)

    def test_not_due_twice_in_a_month(self):
        assert not is_due(netflix(last_processed_date=date(2025, 3, 10)), TODAY)

    def test_due_again_next_month(self):
        assert is_due(netflix(last_processed_date=date(2025, 2, 10)), TODAY)

    def test_inactive_never_due(self):
        assert not is_due(netflix(active=False), TODAY)

    def test_due_scheduled_filters(self):
        items = [netflix(), netflix(day_of_month=28), netflix(active=False)]
        assert len(due_scheduled(items, TODAY)) == 1


class TestProcessing:
    """Tests for the transaction a scheduled item produces."""

    def test_to_transaction(self):
        tx = to_transaction(netflix(), TODAY)
        assert tx.description == "(Recurrente) Netflix"
        assert tx.is_recurring is True
        assert tx.date == TODAY
        assert tx.amount == 12.99
        assert tx.category == "Suscripciones"

    def test_mark_processed(self):
        item = netflix()
        processed = mark_processed(item, TODAY)
        assert processed.last_processed_date == TODAY
        assert not is_due(processed, TODAY)
        assert item.last_processed_date is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
