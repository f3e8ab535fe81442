"""
ORM-Level Immutability Enforcement for the stock ledger.

===============================================================================
WHY THIS EXISTS
===============================================================================

The ledger is the audit trail that explains every balance.  If an entry could
be edited, the balance could no longer be reconciled against history.  Ledger
entries are therefore append-only: a correction is a new movement, never an
edit.

SQLAlchemy fires mapper events before UPDATE/DELETE statements are emitted
for ORM-tracked objects:

    session.flush()
         |
         v
    [before_update] --> _block_ledger_update() --> ImmutabilityViolationError
         |
    [before_delete] --> _block_ledger_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails the flush aborts and the database is never modified.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity          | When Immutable          | Sanctioned removal
----------------|-------------------------|-----------------------------------
LedgerEntry     | ALWAYS (from creation)  | Bulk purge on product deletion
                |                         | (LedgerStore.purge_product)

Bulk ``delete()`` statements do not pass through mapper events; the purge
path relies on that and is only reachable through StockLedgerService after
the zero-balance check.

===============================================================================
USAGE
===============================================================================

    from stock_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from stock_kernel.exceptions import ImmutabilityViolationError
from stock_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block_ledger_update(mapper, connection, target):
    """Prevent any UPDATE of a LedgerEntry."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerEntry",
            "entity_id": str(target.id),
            "operation": "UPDATE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerEntry",
        entity_id=str(target.id),
        reason="Ledger entries are append-only",
    )


def _block_ledger_delete(mapper, connection, target):
    """Prevent ORM DELETE of a LedgerEntry."""
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": "LedgerEntry",
            "entity_id": str(target.id),
            "operation": "DELETE",
        },
    )
    raise ImmutabilityViolationError(
        entity_type="LedgerEntry",
        entity_id=str(target.id),
        reason="Ledger entries cannot be deleted individually",
    )


_registered = False


def register_immutability_listeners() -> None:
    """Register the ledger listeners (idempotent)."""
    global _registered
    if _registered:
        return

    from stock_kernel.models.ledger import LedgerEntry

    event.listen(LedgerEntry, "before_update", _block_ledger_update)
    event.listen(LedgerEntry, "before_delete", _block_ledger_delete)
    _registered = True
    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners() -> None:
    """Remove the ledger listeners. FOR TESTING ONLY."""
    global _registered
    if not _registered:
        return

    from stock_kernel.models.ledger import LedgerEntry

    event.remove(LedgerEntry, "before_update", _block_ledger_update)
    event.remove(LedgerEntry, "before_delete", _block_ledger_delete)
    _registered = False
    logger.debug("immutability_listeners_unregistered")
