"""
Module: stock_modules.catalog.orm
Responsibility: SQLAlchemy ORM persistence for catalog products.
Architecture position: Modules > Catalog > ORM.  Inherits from TimestampedBase
    (stock_kernel.db.base).  Balance and ledger rows reference products by
    UUID with NO foreign key, so the kernel tables do not depend on the
    catalog table.

Invariants enforced:
    - unit_price uses Decimal (Numeric(18,2)) -- NEVER float.
    - safety_stock >= 0 and unit_price >= 0 (CHECK constraints).
"""

from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import TimestampedBase
from stock_kernel.domain.dtos import ProductRef


class ProductModel(TimestampedBase):
    """
    ORM model for a catalog product.

    Maps to: stock_kernel.domain.dtos.ProductRef (frozen dataclass).
    """

    __tablename__ = "products"

    __table_args__ = (
        CheckConstraint("safety_stock >= 0", name="ck_product_safety_stock"),
        CheckConstraint("unit_price >= 0", name="ck_product_unit_price"),
        Index("idx_product_name", "name"),
        Index("idx_product_category", "category"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    unit_price: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    safety_stock: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    def to_dto(self) -> ProductRef:
        return ProductRef(
            id=self.id,
            safety_stock=self.safety_stock,
            name=self.name,
            category=self.category,
            unit_price=self.unit_price,
        )

    def __repr__(self) -> str:
        return f"<ProductModel {self.name} safety={self.safety_stock}>"
