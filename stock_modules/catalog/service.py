"""
CatalogService -- product metadata and the product-deletion guard.

Responsibility:
    CRUD for catalog products, and the ``ProductDirectory`` view the stock
    ledger reads product existence and safety stock from.

Architecture position:
    Modules > Catalog -- thin orchestration service.  Deletion delegates the
    stock check and the ledger cleanup to StockLedgerService.

Invariants enforced:
    - A product with stock on hand is never deleted.  delete_product locks
      the product row FOR UPDATE, which waits for movements holding it FOR
      SHARE (lock_product), then checks can_delete_product(); purge_product()
      re-checks the balance under its row lock, in the same transaction as
      the product removal.
    - Each public mutation owns its transaction boundary when
      auto_commit=True (commit on success, rollback + re-raise on failure).

Failure modes:
    - InvalidProductError: empty name, negative price, negative safety stock.
    - ProductNotFoundError: unknown product ID on update/delete.
    - StockRemainingError: delete while the balance is not 0.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import ProductRef
from stock_kernel.exceptions import (
    InvalidProductError,
    ProductNotFoundError,
    StockRemainingError,
)
from stock_kernel.logging_config import LogContext, get_logger
from stock_kernel.services.stock_ledger_service import StockLedgerService
from stock_modules.catalog.orm import ProductModel

logger = get_logger("modules.catalog")


def _validate(
    name: str | None,
    unit_price: Decimal | None,
    safety_stock: int | None,
) -> None:
    if name is not None and not name.strip():
        raise InvalidProductError("name", "must not be empty")
    if unit_price is not None and unit_price < 0:
        raise InvalidProductError("unit_price", f"must be >= 0, got {unit_price}")
    if safety_stock is not None:
        if isinstance(safety_stock, bool) or not isinstance(safety_stock, int):
            raise InvalidProductError("safety_stock", "must be an integer")
        if safety_stock < 0:
            raise InvalidProductError(
                "safety_stock", f"must be >= 0, got {safety_stock}"
            )


class CatalogService:
    """
    Product catalog backed by the ``products`` table.

    Contract:
        Implements ProductDirectory (get_product, lock_product,
        list_products).  Returns ProductRef DTOs, never ORM rows.
    """

    def __init__(
        self,
        session: Session,
        auto_commit: bool = True,
        default_safety_stock: int = 0,
    ):
        _validate(None, None, default_safety_stock)
        self._session = session
        self._auto_commit = auto_commit
        self._default_safety_stock = default_safety_stock

    def _commit(self) -> None:
        if self._auto_commit:
            self._session.commit()

    def _rollback(self) -> None:
        if self._auto_commit:
            self._session.rollback()

    def _get_model(self, product_id: UUID) -> ProductModel:
        product = self._session.get(ProductModel, product_id)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def _locked(self, product_id: UUID, read: bool) -> ProductModel | None:
        return self._session.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .with_for_update(read=read)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    # ------------------------------------------------------------------
    # ProductDirectory
    # ------------------------------------------------------------------

    def get_product(self, product_id: UUID) -> ProductRef | None:
        product = self._session.get(ProductModel, product_id)
        return product.to_dto() if product is not None else None

    def lock_product(self, product_id: UUID) -> ProductRef | None:
        # FOR SHARE: concurrent movements proceed, delete_product waits
        product = self._locked(product_id, read=True)
        return product.to_dto() if product is not None else None

    def list_products(self) -> list[ProductRef]:
        products = self._session.execute(
            select(ProductModel).order_by(ProductModel.name, ProductModel.id)
        ).scalars().all()
        return [p.to_dto() for p in products]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_product(
        self,
        name: str,
        category: str | None = None,
        unit_price: Decimal = Decimal("0"),
        safety_stock: int | None = None,
    ) -> ProductRef:
        """
        Register a new product.

        Args:
            name: Display name (non-empty).
            category: Optional category label.
            unit_price: Price per unit, >= 0.
            safety_stock: Low-stock threshold; defaults to the configured
                default_safety_stock.

        Returns:
            Created ProductRef.
        """
        if safety_stock is None:
            safety_stock = self._default_safety_stock
        _validate(name, unit_price, safety_stock)

        product = ProductModel(
            id=uuid4(),
            name=name,
            category=category,
            unit_price=unit_price,
            safety_stock=safety_stock,
        )
        try:
            self._session.add(product)
            self._session.flush()
            self._commit()
        except Exception:
            self._rollback()
            raise

        logger.info(
            "product_created",
            extra={
                "product_id": str(product.id),
                "safety_stock": safety_stock,
            },
        )
        return product.to_dto()

    def update_product(
        self,
        product_id: UUID,
        name: str | None = None,
        category: str | None = None,
        unit_price: Decimal | None = None,
        safety_stock: int | None = None,
    ) -> ProductRef:
        """
        Update product details.  Arguments left as None are unchanged.

        Raises:
            InvalidProductError: A supplied value fails validation.
            ProductNotFoundError: Product does not exist.
        """
        _validate(name, unit_price, safety_stock)

        with LogContext.operation("update_product", product_id):
            try:
                product = self._get_model(product_id)
                if name is not None:
                    product.name = name
                if category is not None:
                    product.category = category
                if unit_price is not None:
                    product.unit_price = unit_price
                if safety_stock is not None:
                    product.safety_stock = safety_stock
                self._session.flush()
                self._commit()
            except Exception:
                self._rollback()
                raise

            logger.info("product_updated")
            return product.to_dto()

    def delete_product(self, product_id: UUID) -> None:
        """
        Delete a product together with its balance row and ledger history.

        Raises:
            ProductNotFoundError: Product does not exist.
            StockRemainingError: The product still has stock on hand.
        """
        ledger = StockLedgerService(self._session, self, auto_commit=False)

        with LogContext.operation("delete_product", product_id):
            try:
                # FOR UPDATE waits out in-flight movements holding FOR SHARE
                product = self._locked(product_id, read=False)
                if product is None:
                    raise ProductNotFoundError(str(product_id))

                if not ledger.can_delete_product(product_id):
                    remaining = ledger.current_balance(product_id)
                    logger.warning(
                        "product_delete_rejected",
                        extra={"remaining_quantity": remaining},
                    )
                    raise StockRemainingError(str(product_id), remaining)

                removed = ledger.purge_product(product_id)
                self._session.delete(product)
                self._session.flush()
                self._commit()
            except Exception:
                self._rollback()
                raise

            logger.info(
                "product_deleted",
                extra={"ledger_entries_removed": removed},
            )
