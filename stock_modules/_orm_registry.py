"""
Module ORM Registry (``stock_modules._orm_registry``).

Responsibility
--------------
Ensure all module-level SQLAlchemy ORM models are imported so that
``Base.metadata`` contains their table definitions before tables are
created, and provide ``create_all_tables()`` -- the single entry point that
registers every model and then creates every table.

Architecture position
---------------------
**Modules layer** -- utility.  Imports from sibling ``stock_modules``
packages and from ``stock_kernel.db.engine`` (allowed: modules -> kernel).
MUST NOT be imported by ``stock_kernel``.

Usage
-----
Scripts, entrypoints, and ``tests/conftest.py`` all call
``create_all_tables()``.
"""


def import_all_orm_models() -> None:
    """Import kernel models and every ``stock_modules.*.orm`` module.

    This function is idempotent -- repeated calls are harmless.
    """
    import stock_kernel.models  # noqa: F401
    import stock_modules.catalog.orm  # noqa: F401


def create_all_tables() -> None:
    """Create kernel + module tables.

    Preconditions:
        Engine must be initialized via ``init_engine_from_url()``.
    """
    from stock_kernel.db.engine import create_tables

    import_all_orm_models()
    create_tables()
