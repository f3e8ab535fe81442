"""
StockLedgerService -- the stock ledger engine.

Responsibility:
    Records inbound and outbound movements, keeping each product's balance
    and its ledger history in lock-step, and answers balance, history,
    status, statistics and deletion-guard queries derived from them.

Architecture position:
    Kernel > Services -- imperative shell.
    Composes BalanceStore + LedgerStore (write side), BalanceSelector +
    LedgerSelector (read side), StatisticsCalculator (pure engine) and a
    ProductDirectory supplied by the catalog.

Invariants enforced:
    - Reconciliation: for every product, balance quantity ==
      sum(inbound quantities) - sum(outbound quantities).  Each movement
      changes the balance and appends its ledger entry in ONE transaction
      (or one savepoint when the caller owns the transaction).
    - Non-negativity: outbound is a conditional decrement; it either
      succeeds with enough stock or changes nothing.
    - Per-product serialization without a global lock: the balance row
      UPDATE is the only point of contention, and it is per product.
    - Each movement holds a shared lock on its product row from the
      existence check until commit, so delete_product cannot remove the
      product between the check and the balance write.
    - Rejected preconditions (quantity <= 0, unknown product, insufficient
      stock) leave both the balance and the ledger untouched, and end the
      transaction they opened.

Failure modes:
    - InvalidQuantityError: quantity <= 0 (checked before any lookup).
    - ProductNotFoundError: product unknown to the ProductDirectory.
    - InsufficientStockError: outbound quantity exceeds the balance.
    - InvalidRangeError: statistics window start > end.
    - StockRemainingError: purge_product() while stock remains.

Non-goals:
    - No request deduplication: a caller retrying an ambiguous movement may
      apply it twice.  reconcile() and history() make that visible.
    - No internal retries or background work.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy.orm import Session

from stock_engines.statistics import StatisticsCalculator
from stock_kernel.domain.clock import Clock, SystemClock
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
    is_below_safety_stock,
)
from stock_kernel.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InvalidRangeError,
    ProductNotFoundError,
    StockRemainingError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.selectors.balance_selector import BalanceSelector
from stock_kernel.selectors.ledger_selector import LedgerSelector
from stock_kernel.services.balance_store import BalanceStore
from stock_kernel.services.ledger_store import LedgerStore

logger = get_logger("services.stock_ledger")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class StockLedgerService:
    """
    Stock ledger engine.

    Contract:
        One instance per session; sessions are not shared across threads.
        With auto_commit=True (default) every public mutation commits on
        success and rolls back on failure.  With auto_commit=False each
        movement runs in a savepoint inside the caller's transaction, so it
        is still all-or-nothing, and the caller decides when to commit.

    Guarantees:
        - inbound/outbound append exactly one ledger entry per success and
          none per failure.
        - history() is most-recent-first, ties broken by id descending.
        - status_list() includes every catalog product, 0 if never moved.
    """

    def __init__(
        self,
        session: Session,
        products: ProductDirectory,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        """
        Args:
            session: SQLAlchemy session owned by the current caller/thread.
            products: Product collaborator used for existence and
                safety-stock lookups.
            clock: Clock for occurred_at. Defaults to SystemClock.
            auto_commit: If True, commit per operation; if False, the caller
                manages the transaction.
        """
        self._session = session
        self._products = products
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit

        self._balances = BalanceStore(session)
        self._ledger = LedgerStore(session)
        self._balance_selector = BalanceSelector(session)
        self._ledger_selector = LedgerSelector(session)
        self._calculator = StatisticsCalculator()

    # ------------------------------------------------------------------
    # Transaction helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _movement_scope(self) -> Iterator[None]:
        if self._auto_commit:
            try:
                yield
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning("transaction_rolled_back", exc_info=True)
                raise
        else:
            with self._session.begin_nested():
                yield

    def _finish_read(self) -> None:
        # Ends the read transaction so shared row locks are released
        if self._auto_commit:
            self._session.commit()

    # ------------------------------------------------------------------
    # Preconditions
    # ------------------------------------------------------------------

    @staticmethod
    def _require_positive(quantity: int) -> None:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError(quantity)

    def _require_product(self, product_id: UUID) -> ProductRef:
        # Shared lock held until the movement commits or rolls back
        product = self._products.lock_product(product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def inbound(self, product_id: UUID, quantity: int) -> BalanceSnapshot:
        """
        Receive ``quantity`` units of a product.

        Returns:
            The product's balance after the movement.

        Raises:
            InvalidQuantityError: quantity <= 0.
            ProductNotFoundError: product does not exist.
        """
        with LogContext.operation("inbound", product_id, MovementKind.INBOUND):
            t0 = time.monotonic()
            try:
                self._require_positive(quantity)
                with self._movement_scope():
                    self._require_product(product_id)
                    new_quantity, version = self._balances.increment(
                        product_id, quantity
                    )
                    self._ledger.append(
                        product_id=product_id,
                        kind=MovementKind.INBOUND,
                        quantity=quantity,
                        occurred_at=self._clock.now_utc(),
                        seq=version,
                    )
            except (InvalidQuantityError, ProductNotFoundError) as exc:
                logger.warning(
                    "stock_inbound_rejected",
                    extra={"quantity": quantity, "reason": exc.code},
                )
                raise

            logger.info(
                "stock_inbound_recorded",
                extra={
                    "quantity": quantity,
                    "new_balance": new_quantity,
                    "seq": version,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return BalanceSnapshot(product_id=product_id, quantity=new_quantity)

    def outbound(self, product_id: UUID, quantity: int) -> OutboundResult:
        """
        Issue ``quantity`` units of a product.

        Returns:
            OutboundResult with the new balance and whether it is now
            strictly below the product's safety stock.

        Raises:
            InvalidQuantityError: quantity <= 0.
            ProductNotFoundError: product does not exist.
            InsufficientStockError: balance < quantity; nothing is changed.
        """
        with LogContext.operation("outbound", product_id, MovementKind.OUTBOUND):
            t0 = time.monotonic()
            try:
                self._require_positive(quantity)
                with self._movement_scope():
                    product = self._require_product(product_id)
                    applied = self._balances.decrement_if_sufficient(
                        product_id, quantity
                    )
                    if applied is None:
                        available = self._balance_selector.quantity(product_id)
                        logger.warning(
                            "stock_outbound_rejected",
                            extra={
                                "quantity": quantity,
                                "available": available,
                                "reason": InsufficientStockError.code,
                            },
                        )
                        raise InsufficientStockError(
                            str(product_id), quantity, available
                        )

                    new_quantity, version = applied
                    self._ledger.append(
                        product_id=product_id,
                        kind=MovementKind.OUTBOUND,
                        quantity=quantity,
                        occurred_at=self._clock.now_utc(),
                        seq=version,
                    )
            except (InvalidQuantityError, ProductNotFoundError) as exc:
                logger.warning(
                    "stock_outbound_rejected",
                    extra={"quantity": quantity, "reason": exc.code},
                )
                raise

            below = is_below_safety_stock(new_quantity, product.safety_stock)
            logger.info(
                "stock_outbound_recorded",
                extra={
                    "quantity": quantity,
                    "new_balance": new_quantity,
                    "seq": version,
                    "below_safety_stock": below,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return OutboundResult(
                product_id=product_id,
                new_balance=new_quantity,
                below_safety_stock=below,
            )

    def purge_product(self, product_id: UUID) -> int:
        """
        Remove a product's balance row and ledger history.

        Only the catalog calls this, after can_delete_product() returned
        True.  The zero-balance check is repeated under the row lock so an
        inbound that slipped in between is not lost.

        Returns:
            Number of ledger entries removed.

        Raises:
            StockRemainingError: the balance is not 0.
        """
        with LogContext.bind(operation="purge_product", product_id=product_id):
            with self._movement_scope():
                remaining = self._balances.lock_quantity(product_id)
                if remaining != 0:
                    raise StockRemainingError(str(product_id), remaining)
                removed = self._ledger.purge_product(product_id)
                self._balances.delete(product_id)

            logger.info("stock_ledger_purged", extra={"entries_removed": removed})
            return removed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def current_balance(self, product_id: UUID) -> int:
        """Current quantity on hand, 0 if the product never moved."""
        quantity = self._balance_selector.quantity(product_id)
        self._finish_read()
        return quantity

    def history(self, product_id: UUID) -> list[LedgerEntryRecord]:
        """All movements of a product, most recent first; empty if none."""
        with LogContext.operation("history", product_id):
            entries = self._ledger_selector.history(product_id)
            self._finish_read()
            return entries

    def _status_projection(self, below_only: bool) -> list[StockStatus]:
        name = "below_safety_stock_list" if below_only else "status_list"
        with LogContext.operation(name):
            products = self._products.list_products()
            quantities = self._balance_selector.quantities()
            self._finish_read()

        statuses = [
            StockStatus.from_product(product, quantities.get(product.id, 0))
            for product in products
        ]
        if below_only:
            return [s for s in statuses if s.below_safety_stock]
        return statuses

    def status_list(self) -> list[StockStatus]:
        """Stock position of every catalog product."""
        return self._status_projection(below_only=False)

    def below_safety_stock_list(self) -> list[StockStatus]:
        """Products whose quantity is strictly below their safety stock."""
        return self._status_projection(below_only=True)

    def statistics(
        self,
        product_id: UUID,
        start: datetime,
        end: datetime,
    ) -> InventoryStatistics:
        """
        Movement totals within [start, end] plus turnover rate.

        Naive datetimes are interpreted as UTC.

        Raises:
            InvalidRangeError: start > end.
        """
        start = _as_utc(start)
        end = _as_utc(end)
        if start > end:
            raise InvalidRangeError(start.isoformat(), end.isoformat())

        with LogContext.operation("statistics", product_id):
            current = self._balance_selector.quantity(product_id, share_lock=True)
            entries = self._ledger_selector.entries_between(product_id, start, end)
            self._finish_read()

            return self._calculator.compute(
                product_id=product_id,
                start=start,
                end=end,
                entries=entries,
                current_quantity=current,
            )

    def can_delete_product(self, product_id: UUID) -> bool:
        """True iff the product's balance is exactly 0."""
        return self.current_balance(product_id) == 0

    def reconcile(self, product_id: UUID) -> ReconciliationResult:
        """Check the stored balance against the product's ledger."""
        with LogContext.bind(operation="reconcile", product_id=product_id):
            result = self._ledger_selector.reconcile(product_id)
            self._finish_read()
            if not result.is_consistent:
                logger.error(
                    "stock_reconciliation_mismatch",
                    extra={
                        "balance_quantity": result.balance_quantity,
                        "ledger_net": result.ledger_net,
                    },
                )
            return result

    def reconcile_all(self) -> list[ReconciliationResult]:
        """Reconcile every product that has a balance row or ledger entry."""
        with LogContext.operation("reconcile_all"):
            product_ids = set(self._balance_selector.quantities())
            product_ids.update(self._ledger_selector.products_with_entries())
            return [self.reconcile(pid) for pid in sorted(product_ids, key=str)]
