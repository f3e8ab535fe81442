"""
Module: stock_engines
Responsibility:
    Package entrypoint for the pure calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import stock_kernel.domain and stock_kernel.exceptions.
    MUST NOT import stock_kernel services, selectors, or models.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()``; timestamps are passed in.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from stock_engines.statistics import StatisticsCalculator
"""

from stock_engines.statistics import StatisticsCalculator, turnover_rate
from stock_engines.tracer import traced_engine

__all__ = [
    "StatisticsCalculator",
    "turnover_rate",
    "traced_engine",
]
