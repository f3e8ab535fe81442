"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that cross the stock ledger's
    service boundary: product references handed in by the Product
    collaborator, and balance, movement, status, statistics and
    reconciliation results handed back to callers.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Free of database access.  from_model() class methods are boundary
    converters invoked only from the service and selector layers.

Invariants enforced:
    - ProductRef.safety_stock >= 0
    - LedgerEntryRecord.quantity > 0
    - Safety-stock breach is strict: quantity < threshold.  A balance equal
      to the threshold is not flagged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from uuid import UUID

if TYPE_CHECKING:
    from stock_kernel.models.ledger import LedgerEntry


class MovementKind(str, Enum):
    """Direction of a stock movement."""

    INBOUND = "inbound"
    OUTBOUND = "outbound"


def is_below_safety_stock(quantity: int, safety_stock: int) -> bool:
    """True iff ``quantity`` is strictly below ``safety_stock``."""
    return quantity < safety_stock


# ---------------------------------------------------------------------------
# Product collaborator
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProductRef:
    """What the stock ledger needs to know about a catalog product."""

    id: UUID
    safety_stock: int = 0
    name: str = ""
    category: str | None = None
    unit_price: Decimal | None = None

    def __post_init__(self) -> None:
        if self.safety_stock < 0:
            raise ValueError(
                f"safety_stock must be >= 0, got {self.safety_stock}"
            )


@runtime_checkable
class ProductDirectory(Protocol):
    """Read-only view of the product catalog consumed by the stock ledger.

    Implementations: CatalogService (stock_modules.catalog).
    """

    def get_product(self, product_id: UUID) -> ProductRef | None:
        """Return the product, or None if it does not exist."""
        ...

    def lock_product(self, product_id: UUID) -> ProductRef | None:
        """Like get_product, but hold a shared row lock on the product
        until the current transaction ends, so it cannot be deleted
        underneath a movement."""
        ...

    def list_products(self) -> list[ProductRef]:
        """Return every product in the catalog."""
        ...


# ---------------------------------------------------------------------------
# Movement results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BalanceSnapshot:
    """Balance of one product right after a movement."""

    product_id: UUID
    quantity: int


@dataclass(frozen=True)
class OutboundResult:
    """Outcome of a successful outbound movement."""

    product_id: UUID
    new_balance: int
    below_safety_stock: bool


@dataclass(frozen=True)
class LedgerEntryRecord:
    """Immutable view of one ledger entry."""

    id: int
    product_id: UUID
    kind: MovementKind
    quantity: int
    occurred_at: datetime
    seq: int

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"Ledger quantity must be > 0, got {self.quantity}")

    @property
    def signed_quantity(self) -> int:
        if self.kind == MovementKind.OUTBOUND:
            return -self.quantity
        return self.quantity

    @classmethod
    def from_model(cls, model: LedgerEntry) -> LedgerEntryRecord:
        return cls(
            id=model.id,
            product_id=model.product_id,
            kind=MovementKind(model.kind),
            quantity=model.quantity,
            occurred_at=model.occurred_at,
            seq=model.seq,
        )


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StockStatus:
    """Current stock position of one catalog product."""

    product_id: UUID
    name: str
    category: str | None
    unit_price: Decimal | None
    safety_stock: int
    current_quantity: int

    @property
    def below_safety_stock(self) -> bool:
        return is_below_safety_stock(self.current_quantity, self.safety_stock)

    @classmethod
    def from_product(cls, product: ProductRef, current_quantity: int) -> StockStatus:
        return cls(
            product_id=product.id,
            name=product.name,
            category=product.category,
            unit_price=product.unit_price,
            safety_stock=product.safety_stock,
            current_quantity=current_quantity,
        )


@dataclass(frozen=True)
class InventoryStatistics:
    """
    Movement totals for one product over an inclusive time window.

    turnover_rate is total_outbound / current_quantity, or 0 when the
    current quantity is 0.
    """

    product_id: UUID
    start: datetime
    end: datetime
    total_inbound: int
    total_outbound: int
    current_quantity: int
    turnover_rate: Decimal


@dataclass(frozen=True)
class ReconciliationResult:
    """Stored balance versus the signed sum of the product's ledger."""

    product_id: UUID
    balance_quantity: int
    ledger_inbound: int
    ledger_outbound: int

    @property
    def ledger_net(self) -> int:
        return self.ledger_inbound - self.ledger_outbound

    @property
    def is_consistent(self) -> bool:
        return self.balance_quantity == self.ledger_net
