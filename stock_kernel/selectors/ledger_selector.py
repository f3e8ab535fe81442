"""
Module: stock_kernel.selectors.ledger_selector
Responsibility: Read-only queries over the stock ledger: per-product history,
    time-window extraction for statistics, and the single-statement
    reconciliation of a stored balance against its ledger.
Architecture position: Kernel > Selectors.  May import from models/, domain/
    and selectors/base.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - History order is occurred_at DESC, id DESC: most recent first, with
      same-instant entries in reverse insertion order.
    - Window bounds are inclusive on both ends.
    - reconcile() reads the balance and both ledger sums in ONE statement,
      so it never mixes two mutation states of the same product.

Failure modes:
    - Unknown products yield empty histories and zero sums, never errors.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import (
    LedgerEntryRecord,
    MovementKind,
    ReconciliationResult,
)
from stock_kernel.logging_config import get_logger
from stock_kernel.models.balance import StockBalance
from stock_kernel.models.ledger import LedgerEntry
from stock_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.ledger")


class LedgerSelector(BaseSelector[LedgerEntry]):
    """
    Selector for ledger queries.

    Guarantees:
        - Returns LedgerEntryRecord DTOs, never ORM rows.
        - All sums are ints; missing data sums to 0.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def history(self, product_id: UUID) -> list[LedgerEntryRecord]:
        """All entries for a product, most recent first."""
        rows = self.session.execute(
            select(LedgerEntry)
            .where(LedgerEntry.product_id == product_id)
            .order_by(LedgerEntry.occurred_at.desc(), LedgerEntry.id.desc())
        ).scalars().all()
        logger.debug("ledger_history_read", extra={"entry_count": len(rows)})
        return [LedgerEntryRecord.from_model(row) for row in rows]

    def entries_between(
        self,
        product_id: UUID,
        start: datetime,
        end: datetime,
        kind: MovementKind | None = None,
    ) -> list[LedgerEntryRecord]:
        """Entries with start <= occurred_at <= end, oldest first."""
        query = (
            select(LedgerEntry)
            .where(LedgerEntry.product_id == product_id)
            .where(LedgerEntry.occurred_at >= start)
            .where(LedgerEntry.occurred_at <= end)
        )
        if kind is not None:
            query = query.where(LedgerEntry.kind == kind.value)

        rows = self.session.execute(
            query.order_by(LedgerEntry.occurred_at, LedgerEntry.id)
        ).scalars().all()
        logger.debug(
            "ledger_window_read",
            extra={"window_start": start, "window_end": end, "entry_count": len(rows)},
        )
        return [LedgerEntryRecord.from_model(row) for row in rows]

    def entry_count(self, product_id: UUID) -> int:
        return self.session.execute(
            select(func.count(LedgerEntry.id))
            .where(LedgerEntry.product_id == product_id)
        ).scalar_one()

    def _kind_total(self, product_id: UUID, kind: MovementKind):
        return (
            select(func.coalesce(func.sum(LedgerEntry.quantity), 0))
            .where(LedgerEntry.product_id == product_id)
            .where(LedgerEntry.kind == kind.value)
            .scalar_subquery()
        )

    def reconcile(self, product_id: UUID) -> ReconciliationResult:
        """Compare the stored balance with the signed ledger sum."""
        balance_q = (
            select(StockBalance.quantity)
            .where(StockBalance.product_id == product_id)
            .scalar_subquery()
        )
        row = self.session.execute(
            select(
                func.coalesce(balance_q, 0),
                self._kind_total(product_id, MovementKind.INBOUND),
                self._kind_total(product_id, MovementKind.OUTBOUND),
            )
        ).one()

        result = ReconciliationResult(
            product_id=product_id,
            balance_quantity=int(row[0]),
            ledger_inbound=int(row[1]),
            ledger_outbound=int(row[2]),
        )
        logger.debug(
            "ledger_reconciled",
            extra={
                "balance_quantity": result.balance_quantity,
                "ledger_net": result.ledger_net,
            },
        )
        return result

    def products_with_entries(self) -> list[UUID]:
        """Distinct product IDs that have at least one ledger entry."""
        return list(
            self.session.execute(
                select(LedgerEntry.product_id).distinct()
            ).scalars().all()
        )
