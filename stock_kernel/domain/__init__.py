"""
Pure domain layer.

Data transfer objects, the Product collaborator protocol, and the clock
abstraction.  NO dependencies on the ORM, the database, or I/O (SystemClock
is the one sanctioned boundary for time).

All DTOs are frozen dataclasses.
"""

from stock_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from stock_kernel.domain.dtos import (
    BalanceSnapshot,
    InventoryStatistics,
    LedgerEntryRecord,
    MovementKind,
    OutboundResult,
    ProductDirectory,
    ProductRef,
    ReconciliationResult,
    StockStatus,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "MovementKind",
    "ProductRef",
    "ProductDirectory",
    "BalanceSnapshot",
    "OutboundResult",
    "LedgerEntryRecord",
    "StockStatus",
    "InventoryStatistics",
    "ReconciliationResult",
]
