"""Validation package."""

from vaultly.validation.validator import (
    FinanceValidator,
    InsufficientFundsError,
    ValidationFailedError,
)

__all__ = [
    "FinanceValidator",
    "InsufficientFundsError",
    "ValidationFailedError",
]
