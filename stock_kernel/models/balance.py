"""
Module: stock_kernel.models.balance
Responsibility: ORM persistence for current per-product stock balances.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity >= 0 (CHECK constraint, and the conditional UPDATE in
      services/balance_store.py never produces a negative value).
    - One row per product (UNIQUE product_id).
    - version increases by exactly one per movement and equals the number
      of ledger entries recorded for the product.

Failure modes:
    - IntegrityError on a second row for the same product (handled by the
      balance store's savepoint-and-retry path).
"""

from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base, UUIDString


class StockBalance(Base):
    """
    Current on-hand quantity for one product.

    Contract:
        Created implicitly by the first inbound movement.  Mutated only by
        the balance store on behalf of StockLedgerService.  A missing row
        reads as quantity 0.
    """

    __tablename__ = "stock_balances"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_balance_quantity_non_negative"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
        unique=True,
    )

    quantity: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    # Movement counter; copied onto each ledger entry as its seq
    version: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )

    def __repr__(self) -> str:
        return f"<StockBalance {self.product_id} qty={self.quantity} v{self.version}>"
