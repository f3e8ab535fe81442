"""Services for the stock kernel (write side and the engine facade)."""

from stock_kernel.services.balance_store import BalanceStore
from stock_kernel.services.ledger_store import LedgerStore
from stock_kernel.services.stock_ledger_service import StockLedgerService

__all__ = [
    "BalanceStore",
    "LedgerStore",
    "StockLedgerService",
]
