"""
Catalog Module (``stock_modules.catalog``).

Responsibility
--------------
Reference Product collaborator for the stock ledger: product metadata
(name, category, unit price, safety stock) and the product-deletion guard.
``CatalogService`` satisfies ``stock_kernel.domain.dtos.ProductDirectory``,
so it can be handed straight to ``StockLedgerService``.

Architecture
------------
Layer: **Modules**.  Imports from ``stock_kernel`` but never the reverse.

Failure Modes
-------------
- ``InvalidProductError`` for empty names, negative prices or negative
  safety stock.
- ``ProductNotFoundError`` for unknown product IDs on update/delete.
- ``StockRemainingError`` when deleting a product that still has stock.
"""

from stock_modules.catalog.orm import ProductModel
from stock_modules.catalog.service import CatalogService

__all__ = [
    "CatalogService",
    "ProductModel",
]
