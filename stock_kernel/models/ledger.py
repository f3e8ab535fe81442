"""
Module: stock_kernel.models.ledger
Responsibility: ORM persistence for stock ledger entries -- the append-only
    record of every inbound and outbound movement.
Architecture position: Kernel > Models.  May import from db/base.py and the
    MovementKind enum in domain/dtos.py.

Invariants enforced:
    - quantity > 0 (CHECK constraint; zero/negative movements are rejected
      by the service before any row exists).
    - kind is one of MovementKind values (CHECK constraint).
    - id is assigned by the store and increases with every insert, across
      all products.
    - (product_id, seq) is unique: seq is the per-product balance version at
      the moment of the movement.
    - Rows are never updated or deleted through the ORM
      (db/immutability.py); the only removal path is the bulk purge run
      when a product is deleted.

Failure modes:
    - IntegrityError on a duplicate (product_id, seq).
    - ImmutabilityViolationError on ORM UPDATE/DELETE.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from stock_kernel.db.base import Base, UTCDateTime, UUIDString
from stock_kernel.domain.dtos import MovementKind


class LedgerEntry(Base):
    """
    One stock movement for one product.

    Contract:
        Written exactly once, in the same transaction as the balance change
        it describes.  The signed sum of a product's entries equals its
        balance quantity.
    """

    __tablename__ = "stock_ledger_entries"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_ledger_quantity_positive"),
        CheckConstraint(
            "kind IN ('inbound', 'outbound')", name="ck_ledger_kind"
        ),
        UniqueConstraint("product_id", "seq", name="uq_ledger_product_seq"),
        Index("idx_ledger_product_occurred", "product_id", "occurred_at"),
        Index("idx_ledger_product_kind", "product_id", "kind"),
    )

    # Store-assigned, strictly increasing in insertion order.  SQLite only
    # autoincrements an INTEGER PRIMARY KEY, hence the variant.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        nullable=False,
    )

    kind: Mapped[MovementKind] = mapped_column(
        String(10),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    occurred_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
    )

    # Balance version after this movement; orders same-instant entries
    seq: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.product_id} #{self.seq} "
            f"{self.kind} {self.quantity}>"
        )
