"""Tests for the monthly cash-flow projection."""

from datetime import date, datetime

import pytest

from vaultly.engine.projections import calculate_monthly_projection
from vaultly.models.records import (
    AutoSaveConfig,
    Credit,
    Fund,
    Goal,
    ScheduledTransaction,
    Transaction,
    TransactionType,
)
from vaultly.models.reports import ProjectionSource, SimulatedTransaction

TODAY = date(2025, 3, 15)
MARCH = date(2025, 3, 1)


def scheduled(item_id, amount, kind, day, created=datetime(2025, 1, 1), active=True):
    return ScheduledTransaction(
        id=item_id,
        amount=amount,
        type=kind,
        description=item_id,
        day_of_month=day,
        created_at=created,
        active=active,
    )


@pytest.fixture
def month_sources():
    return {
        "scheduled": [
            scheduled("rent", 800, TransactionType.EXPENSE, 1),
            scheduled("salary", 2000, TransactionType.INCOME, 5),
        ],
        "goals": [Goal(
            id="g1",
            name="Viaje",
            target_amount=1200,
            start_date=date(2025, 1, 10),
            deadline=date(2026, 3, 15),
        )],
        "credits": [Credit(id="c1", name="Moto", principal=1200, term=12, start_date=date(2025, 1, 20))],
        "funds": [Fund(
            id="f1",
            name="Emergencias",
            auto_save_config=AutoSaveConfig(enabled=True, amount=50, day_of_month=25),
        )],
        "simulated": [
            SimulatedTransaction(
                id="s1", description="TV", amount=300, type=TransactionType.EXPENSE, date=date(2025, 3, 28)
            ),
            SimulatedTransaction(
                id="s2", description="Abril", amount=999, type=TransactionType.EXPENSE, date=date(2025, 4, 2)
            ),
        ],
    }


class TestMonthlyProjection:
    """Tests for calculate_monthly_projection."""

    def test_timeline(self, month_sources):
        projection = calculate_monthly_projection(MARCH, TODAY, initial_balance=1000, **month_sources)

        assert [item.name for item in projection.timeline] == [
            "rent", "salary", "Meta: Viaje", "Crédito: Moto", "Fondo: Emergencias", "TV",
        ]
        assert [item.balance_after for item in projection.timeline] == [
            200.0, 2200.0, 2100.0, 2000.0, 1950.0, 1650.0,
        ]
        assert projection.month == MARCH
        assert projection.final_balance == 1650.0
        assert projection.total_income == 2000.0
        assert projection.total_expense == 1350.0
        assert projection.lowest_point == 200.0

    def test_item_dates_and_sources(self, month_sources):
        projection = calculate_monthly_projection(MARCH, TODAY, initial_balance=1000, **month_sources)
        by_id = {item.id: item for item in projection.timeline}

        assert by_id["g1"].date == date(2025, 3, 10)
        assert by_id["g1"].source == ProjectionSource.GOAL
        assert by_id["c1"].date == date(2025, 3, 20)
        assert by_id["f1"].date == date(2025, 3, 25)
        assert by_id["s1"].source == ProjectionSource.SIMULATED
        assert "s2" not in by_id

    def test_excluded_items_stay_but_do_not_apply(self, month_sources):
        projection = calculate_monthly_projection(
            MARCH, TODAY, initial_balance=1000, excluded_ids={"rent"}, **month_sources
        )
        rent = projection.timeline[0]

        assert rent.is_excluded
        assert rent.balance_after == 1000.0
        assert projection.final_balance == 2450.0
        assert projection.total_expense == 550.0
        assert projection.lowest_point == 1000.0

    def test_without_initial_balance(self, month_sources):
        projection = calculate_monthly_projection(
            MARCH, TODAY, initial_balance=1000, include_balance=False, **month_sources
        )
        assert projection.lowest_point == -800.0
        assert projection.final_balance == 650.0

    def test_scheduled_created_after_month_is_skipped(self):
        items = [
            scheduled("later", 100, TransactionType.EXPENSE, 3, created=datetime(2025, 4, 2)),
            scheduled("off", 100, TransactionType.EXPENSE, 3, active=False),
        ]
        projection = calculate_monthly_projection(MARCH, TODAY, scheduled=items)
        assert projection.timeline == []

    def test_scheduled_day_clamped_to_month_length(self):
        items = [scheduled("fin", 10, TransactionType.EXPENSE, 31)]
        projection = calculate_monthly_projection(date(2025, 2, 1), TODAY, scheduled=items)
        assert projection.timeline[0].date == date(2025, 2, 28)

    def test_credit_outside_term_is_skipped(self):
        credit = Credit(name="Viejo", principal=300, term=3, start_date=date(2024, 6, 1))
        projection = calculate_monthly_projection(MARCH, TODAY, credits=[credit])
        assert projection.timeline == []

    def test_goal_without_deadline_uses_fallback_quota(self):
        goal = Goal(name="Casa", target_amount=1200, current_amount=0, start_date=date(2025, 1, 1))
        projection = calculate_monthly_projection(MARCH, TODAY, goals=[goal])
        assert projection.timeline[0].amount == 100.0

    def test_quota_rules_are_injectable(self, month_sources):
        projection = calculate_monthly_projection(
            MARCH,
            TODAY,
            goals=month_sources["goals"],
            credits=month_sources["credits"],
            goal_quota=lambda goal: 10.0,
            credit_quota=lambda credit: 20.0,
        )
        assert [item.amount for item in projection.timeline] == [10.0, 20.0]

    @pytest.mark.asyncio
    async def test_engine_projection_starts_from_current_balance(self, repositories, engine, month_sources):
        await repositories.transactions.add(
            Transaction(amount=500, type=TransactionType.INCOME, date=date(2025, 3, 1))
        )
        for item in month_sources["scheduled"]:
            await repositories.scheduled.add(item)

        projection = engine.monthly_projection(date(2025, 4, 1))
        assert projection.initial_balance == 500.0
        assert projection.final_balance == 1700.0
