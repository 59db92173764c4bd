"""
Money Arithmetic in Integer Cents

Amounts cross the system boundary as major-unit floats (10.50) but every
multi-term sum is accumulated in integer minor units (1050) and converted
back once. This removes float drift such as 0.1 + 0.2 != 0.3.

Rounding is half-up on the decimal representation of the float, so
float noise like 10.50000000001 lands on 1050.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Number = Union[int, float, Decimal]

_ONE = Decimal(1)


def _round_half_up(value: Number) -> int:
    """Round to the nearest integer, halves away from zero."""
    if isinstance(value, int):
        return value
    return int(Decimal(str(value)).quantize(_ONE, rounding=ROUND_HALF_UP))


def to_cents(amount: Number) -> int:
    """Convert a major-unit amount (10.50) to integer cents (1050)."""
    if amount is None:
        return 0
    return _round_half_up(Decimal(str(amount)) * 100)


def from_cents(cents: int) -> float:
    """Convert integer cents (1050) back to a major-unit amount (10.5)."""
    return cents / 100


def safe_add(a: Number, b: Number) -> float:
    """Add two amounts without float drift."""
    return from_cents(to_cents(a) + to_cents(b))


def safe_sub(a: Number, b: Number) -> float:
    """Subtract b from a without float drift."""
    return from_cents(to_cents(a) - to_cents(b))


def safe_mul(amount: Number, factor: Number) -> float:
    """Multiply an amount by a factor, rounding once to the cent."""
    return from_cents(_round_half_up(Decimal(to_cents(amount)) * Decimal(str(factor))))


def safe_div(amount: Number, divisor: Number) -> float:
    """
    Divide an amount, rounding once to the cent.

    Division by zero returns 0 instead of raising.
    """
    if divisor == 0:
        return 0.0
    return from_cents(_round_half_up(Decimal(to_cents(amount)) / Decimal(str(divisor))))


def safe_percent(amount: Number, percentage: Number) -> float:
    """Take `percentage` percent (15 for 15%) of an amount."""
    return from_cents(
        _round_half_up(Decimal(to_cents(amount)) * Decimal(str(percentage)) / 100)
    )


def sum_cents(amounts: Iterable[Number]) -> int:
    """Sum major-unit amounts in cents."""
    return sum((to_cents(a) for a in amounts), 0)


def safe_sum(amounts: Iterable[Number]) -> float:
    """Sum major-unit amounts without float drift."""
    return from_cents(sum_cents(amounts))


def percent_of(part: Number, whole: Number) -> float:
    """part / whole * 100, or 0 when whole is zero."""
    whole_cents = to_cents(whole)
    if whole_cents == 0:
        return 0.0
    return to_cents(part) / whole_cents * 100


def format_currency(amount: Number, symbol: str = "$") -> str:
    """Format an amount with two decimals and thousands separators."""
    cents = to_cents(amount)
    sign = "-" if cents < 0 else ""
    return f"{sign}{symbol}{abs(cents) / 100:,.2f}"
