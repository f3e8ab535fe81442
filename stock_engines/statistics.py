"""
stock_engines.statistics -- Period movement totals and turnover rate.

Responsibility:
    Aggregate a window of ledger entries and the current balance into
    InventoryStatistics: total inbound, total outbound, current quantity
    and turnover rate.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain and stock_kernel.exceptions.
    Consumed by StockLedgerService.statistics().

Invariants enforced:
    - Purity: no clock access, no database access.  Identical inputs
      produce identical outputs.
    - Decimal-only ratio: turnover_rate is a Decimal, never a float.
    - Zero-balance policy: turnover_rate is Decimal("0") whenever
      current_quantity is 0, regardless of total_outbound.

Failure modes:
    - InvalidRangeError if start > end.
    - ValueError if current_quantity is negative.

Usage:
    calculator = StatisticsCalculator()
    stats = calculator.compute(
        product_id=pid,
        start=start,
        end=end,
        entries=entries,
        current_quantity=95,
    )
    stats.turnover_rate  # Decimal(35) / Decimal(95)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from stock_engines.tracer import traced_engine
from stock_kernel.domain.dtos import InventoryStatistics, LedgerEntryRecord, MovementKind
from stock_kernel.exceptions import InvalidRangeError


def turnover_rate(total_outbound: int, current_quantity: int) -> Decimal:
    """Outbound over current quantity; 0 when nothing is on hand."""
    if current_quantity <= 0:
        return Decimal("0")
    return Decimal(total_outbound) / Decimal(current_quantity)


class StatisticsCalculator:
    """
    Pure function calculator for inventory statistics.

    Contract:
        ``entries`` are already restricted to the window by the caller;
        the calculator sums them by kind and does not re-filter by time.
    """

    @traced_engine(
        "inventory_statistics",
        "1.0",
        fingerprint_fields=("product_id", "start", "end", "entries", "current_quantity"),
    )
    def compute(
        self,
        *,
        product_id: UUID,
        start: datetime,
        end: datetime,
        entries: Iterable[LedgerEntryRecord],
        current_quantity: int,
    ) -> InventoryStatistics:
        if start > end:
            raise InvalidRangeError(start.isoformat(), end.isoformat())
        if current_quantity < 0:
            raise ValueError(
                f"current_quantity must be >= 0, got {current_quantity}"
            )

        total_inbound = 0
        total_outbound = 0
        for entry in entries:
            if entry.kind == MovementKind.INBOUND:
                total_inbound += entry.quantity
            else:
                total_outbound += entry.quantity

        return InventoryStatistics(
            product_id=product_id,
            start=start,
            end=end,
            total_inbound=total_inbound,
            total_outbound=total_outbound,
            current_quantity=current_quantity,
            turnover_rate=turnover_rate(total_outbound, current_quantity),
        )
