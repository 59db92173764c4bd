"""Fund movements and auto-save amounts."""

from typing import Optional

from vaultly.models.records import AutoSaveType, Fund, FundMovementType, FundTransaction
from vaultly.utils.dates import DateLike, as_date
from vaultly.utils.money import from_cents, safe_percent, to_cents


def with_movement(
    fund: Fund,
    amount: float,
    movement: FundMovementType,
    today: DateLike,
    note: Optional[str] = None,
) -> Fund:
    """Append a deposit or withdraw and update the cached total, floored at zero."""
    item = FundTransaction(
        fund_id=fund.id,
        date=as_date(today),
        amount=amount,
        type=movement,
        note=note,
    )
    current = to_cents(fund.current_total()) + item.signed_cents
    return fund.model_copy(update={
        "current_amount": from_cents(max(0, current)),
        "history": [*fund.history, item],
    })


def auto_save_amount(fund: Fund, base_balance: float) -> float:
    """
    Monthly auto-save transfer for a fund.

    Percentage configs take a percent of `base_balance`. Disabled or missing
    configs transfer nothing.
    """
    config = fund.auto_save_config
    if config is None or not config.enabled:
        return 0.0
    if config.type == AutoSaveType.FIXED:
        return config.amount
    return safe_percent(base_balance, config.amount)
