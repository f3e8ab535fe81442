"""
Stock Kernel - ledger-backed inventory balances

A per-product stock ledger with:
- Atomic balance mutation + ledger append
- Non-negative balances under concurrent access
- Append-only movement history
- Period statistics derived from the ledger
"""

__version__ = "0.1.0"
