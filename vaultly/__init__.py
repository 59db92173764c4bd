"""
Vaultly - Core Package

Financial computation and ledger aggregation for a personal-finance tracker:
transactions, savings goals, earmarked funds, installment credits and
multi-phase projects.

DESIGN PRINCIPLES:
1. Available balance = net cash flow - everything earmarked
2. Accumulate in integer cents, never in floats
3. Read functions are pure over the latest store snapshots
4. Validate before mutating, fail visibly
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Vaultly Team"
