"""
Typed Exception Hierarchy for the Stock Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the stock ledger must decide whether a failed movement is worth
retrying with different input, is a conflict with current stock, or refers
to something that does not exist.  Parsing message strings for that is
fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        ledger.outbound(product_id, 5)
    except InsufficientStockError as e:
        reply(code=e.code, requested=e.requested, available=e.available)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    StockLedgerError (base)
    |
    +-- ValidationError            (bad input -- retry with different input)
    |   +-- InvalidQuantityError
    |   +-- InvalidRangeError
    |   +-- InvalidProductError
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |
    +-- StateConflictError         (input is fine, current stock disagrees)
    |   +-- InsufficientStockError
    |   +-- StockRemainingError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                    | When Raised
----------------|-------------------------|-------------------------------------
Validation      | INVALID_QUANTITY        | Movement quantity <= 0
                | INVALID_RANGE           | Statistics window start > end
                | INVALID_PRODUCT         | Catalog field fails validation
----------------|-------------------------|-------------------------------------
Not found       | PRODUCT_NOT_FOUND       | Product ID unknown to the catalog
----------------|-------------------------|-------------------------------------
State conflict  | INSUFFICIENT_STOCK      | Outbound exceeds current balance
                | STOCK_REMAINING         | Product deletion with balance > 0
----------------|-------------------------|-------------------------------------
Immutability    | IMMUTABILITY_VIOLATION  | UPDATE/DELETE of a ledger entry
----------------|-------------------------|-------------------------------------
Configuration   | CONFIGURATION_ERROR     | Invalid configuration value

None of these are retried inside the kernel.  Every rejected precondition
leaves both the balance and the ledger untouched.
"""


class StockLedgerError(Exception):
    """
    Base exception for all stock kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "STOCK_LEDGER_ERROR"


# Validation (bad input)


class ValidationError(StockLedgerError):
    """Base exception for rejected caller input."""

    code: str = "VALIDATION_ERROR"


class InvalidQuantityError(ValidationError):
    """Movement quantity must be strictly positive."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Movement quantity must be greater than 0, got {quantity}")


class InvalidRangeError(ValidationError):
    """Statistics window starts after it ends."""

    code: str = "INVALID_RANGE"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Invalid range: start {start} is after end {end}")


class InvalidProductError(ValidationError):
    """Catalog field failed validation."""

    code: str = "INVALID_PRODUCT"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid product field '{field}': {reason}")


# Not found


class NotFoundError(StockLedgerError):
    """Base exception for unknown identifiers."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product with given ID was not found."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


# State conflicts


class StateConflictError(StockLedgerError):
    """Base exception for operations rejected by current stock state."""

    code: str = "STATE_CONFLICT"


class InsufficientStockError(StateConflictError):
    """Outbound quantity exceeds the current balance."""

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )


class StockRemainingError(StateConflictError):
    """Product cannot be deleted while it still has stock on hand."""

    code: str = "STOCK_REMAINING"

    def __init__(self, product_id: str, quantity: int):
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(
            f"Product {product_id} still has {quantity} unit(s) in stock "
            "and cannot be deleted"
        )


# Immutability


class ImmutabilityError(StockLedgerError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only ledger record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Configuration


class ConfigurationError(StockLedgerError):
    """Configuration value is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
