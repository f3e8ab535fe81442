"""ORM models for the stock kernel."""

from stock_kernel.models.balance import StockBalance
from stock_kernel.models.ledger import LedgerEntry

__all__ = [
    "StockBalance",
    "LedgerEntry",
]
