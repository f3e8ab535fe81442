"""
LedgerStore -- append path for stock ledger entries.

Responsibility:
    Appends exactly one LedgerEntry per movement and, on product deletion,
    bulk-purges a product's entries.  Reads live in LedgerSelector.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called ONLY by StockLedgerService, inside its transaction.

Invariants enforced:
    - Append-only: no update path exists; ORM updates/deletes are blocked by
      db/immutability.py.
    - seq is supplied by the caller from the balance version produced by
      the same statement that changed the balance, so (product_id, seq)
      is unique and gap-free per product.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.orm import Session

from stock_kernel.domain.dtos import LedgerEntryRecord, MovementKind
from stock_kernel.logging_config import get_logger
from stock_kernel.models.ledger import LedgerEntry

logger = get_logger("services.ledger_store")


class LedgerStore:
    """Append-only writer for ledger entries. Never commits."""

    def __init__(self, session: Session):
        self._session = session

    def append(
        self,
        product_id: UUID,
        kind: MovementKind,
        quantity: int,
        occurred_at: datetime,
        seq: int,
    ) -> LedgerEntryRecord:
        entry = LedgerEntry(
            product_id=product_id,
            kind=kind.value,
            quantity=quantity,
            occurred_at=occurred_at,
            seq=seq,
        )
        self._session.add(entry)
        self._session.flush()
        logger.debug(
            "ledger_entry_appended",
            extra={
                "product_id": str(product_id),
                "kind": kind.value,
                "quantity": quantity,
                "seq": seq,
            },
        )
        return LedgerEntryRecord(
            id=entry.id,
            product_id=product_id,
            kind=kind,
            quantity=quantity,
            occurred_at=occurred_at,
            seq=seq,
        )

    def purge_product(self, product_id: UUID) -> int:
        """Bulk-delete every entry of a product. Returns rows deleted."""
        result = self._session.execute(
            delete(LedgerEntry)
            .where(LedgerEntry.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
