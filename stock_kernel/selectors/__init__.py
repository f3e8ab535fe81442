"""Selectors for the stock kernel (read side)."""

from stock_kernel.selectors.balance_selector import BalanceSelector
from stock_kernel.selectors.ledger_selector import LedgerSelector

__all__ = [
    "BalanceSelector",
    "LedgerSelector",
]
