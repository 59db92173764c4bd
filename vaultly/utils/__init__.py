"""Money and calendar helpers shared by the models and the engine."""

from vaultly.utils.dates import (
    DateLike,
    add_months,
    as_date,
    day_in_month,
    end_of_day,
    end_of_month,
    month_diff,
    month_key,
    same_month,
    start_of_month,
)
from vaultly.utils.money import (
    format_currency,
    from_cents,
    percent_of,
    safe_add,
    safe_div,
    safe_mul,
    safe_percent,
    safe_sub,
    safe_sum,
    sum_cents,
    to_cents,
)

__all__ = [
    "DateLike",
    "add_months",
    "as_date",
    "day_in_month",
    "end_of_day",
    "end_of_month",
    "month_diff",
    "month_key",
    "same_month",
    "start_of_month",
    "format_currency",
    "from_cents",
    "percent_of",
    "safe_add",
    "safe_div",
    "safe_mul",
    "safe_percent",
    "safe_sub",
    "safe_sum",
    "sum_cents",
    "to_cents",
]
