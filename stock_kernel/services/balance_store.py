"""
BalanceStore -- write path for per-product stock balances.

Responsibility:
    Applies balance changes as single atomic statements against the
    ``stock_balances`` table.  Reads live in BalanceSelector.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called ONLY by StockLedgerService, inside its transaction.

Invariants enforced:
    - Non-negative balances.  decrement_if_sufficient() is one conditional
      statement:

          UPDATE stock_balances
             SET quantity = quantity - :q, version = version + 1
           WHERE product_id = :p AND quantity >= :q
       RETURNING quantity, version

      The sufficiency check and the decrement cannot be interleaved with
      another movement on the same product: the row lock taken by the
      UPDATE is held until the caller's transaction ends, and PostgreSQL
      re-evaluates the WHERE clause against the newest row version.  Rows of
      other products are untouched, so they never wait on each other.
    - The read-compute-write anti-pattern is FORBIDDEN here; every change is
      expressed relative to the stored value.
    - version increments by exactly one per movement.

Failure modes:
    - IntegrityError on concurrent first-insert of the same product
      (handled via savepoint rollback and retry of the UPDATE).
"""

from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stock_kernel.logging_config import get_logger
from stock_kernel.models.balance import StockBalance

logger = get_logger("services.balance_store")


class BalanceStore:
    """
    Atomic balance mutations.

    Contract:
        Never calls ``session.commit()`` -- the caller owns the transaction.
        Every method returns the post-change ``(quantity, version)``.
    """

    def __init__(self, session: Session):
        self._session = session

    def _apply(self, product_id: UUID, delta: int, require_available: int | None = None):
        stmt = (
            update(StockBalance)
            .where(StockBalance.product_id == product_id)
            .values(
                quantity=StockBalance.quantity + delta,
                version=StockBalance.version + 1,
            )
            .returning(StockBalance.quantity, StockBalance.version)
            .execution_options(synchronize_session=False)
        )
        if require_available is not None:
            stmt = stmt.where(StockBalance.quantity >= require_available)
        return self._session.execute(stmt).one_or_none()

    def increment(self, product_id: UUID, quantity: int) -> tuple[int, int]:
        """
        Add ``quantity`` to the product's balance, creating the row if needed.

        Returns:
            (new_quantity, new_version)
        """
        row = self._apply(product_id, quantity)
        if row is not None:
            return int(row[0]), int(row[1])

        # First movement for this product.  Another transaction may insert
        # the same row concurrently; isolate our insert in a savepoint.
        savepoint = self._session.begin_nested()
        try:
            self._session.add(
                StockBalance(product_id=product_id, quantity=quantity, version=1)
            )
            self._session.flush()
            savepoint.commit()
            logger.debug(
                "balance_row_created",
                extra={"product_id": str(product_id), "quantity": quantity},
            )
            return quantity, 1
        except IntegrityError:
            logger.debug(
                "balance_row_race_retry",
                extra={"product_id": str(product_id)},
            )
            savepoint.rollback()
            self._session.expire_all()

        row = self._apply(product_id, quantity)
        if row is None:
            raise RuntimeError(
                f"Balance row for product {product_id} vanished during insert retry"
            )
        return int(row[0]), int(row[1])

    def decrement_if_sufficient(
        self, product_id: UUID, quantity: int
    ) -> tuple[int, int] | None:
        """
        Subtract ``quantity`` only if at least that much is on hand.

        Returns:
            (new_quantity, new_version), or None when the balance is
            insufficient (including when the product has no balance row).
        """
        row = self._apply(product_id, -quantity, require_available=quantity)
        if row is None:
            return None
        return int(row[0]), int(row[1])

    def lock_quantity(self, product_id: UUID) -> int:
        """Lock the product's balance row for update and return its quantity."""
        value = self._session.execute(
            select(StockBalance.quantity)
            .where(StockBalance.product_id == product_id)
            .with_for_update()
        ).scalar_one_or_none()
        return 0 if value is None else int(value)

    def delete(self, product_id: UUID) -> int:
        """Remove the product's balance row. Returns rows deleted."""
        result = self._session.execute(
            delete(StockBalance)
            .where(StockBalance.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
