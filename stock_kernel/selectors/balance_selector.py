"""
Module: stock_kernel.selectors.balance_selector
Responsibility: Read path of the Balance Store.  This is the ONE place where
    "no balance row" becomes quantity 0.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - quantity() never returns None: a product that never moved reads 0.
    - quantity(share_lock=True) takes a shared row lock (FOR SHARE on
      PostgreSQL) so a statistics read sees the balance and the ledger from
      the same mutation state.  SQLite ignores the clause; its
      BEGIN IMMEDIATE transactions already serialize.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.logging_config import get_logger
from stock_kernel.models.balance import StockBalance
from stock_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.balance")


class BalanceSelector(BaseSelector[StockBalance]):
    """Selector for current balances."""

    def __init__(self, session: Session):
        super().__init__(session)

    def quantity(self, product_id: UUID, share_lock: bool = False) -> int:
        """Current quantity of a product, 0 if it has never moved."""
        query = select(StockBalance.quantity).where(
            StockBalance.product_id == product_id
        )
        if share_lock:
            query = query.with_for_update(read=True)

        value = self.session.execute(query).scalar_one_or_none()
        quantity = 0 if value is None else int(value)
        logger.debug(
            "balance_read",
            extra={
                "quantity": quantity,
                "has_balance_row": value is not None,
                "share_lock": share_lock,
            },
        )
        return quantity

    def quantities(self) -> dict[UUID, int]:
        """Quantity per product for every product that has a balance row."""
        rows = self.session.execute(
            select(StockBalance.product_id, StockBalance.quantity)
        ).all()
        return {product_id: int(quantity) for product_id, quantity in rows}
