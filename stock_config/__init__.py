"""
stock_config -- single public entrypoint for stock ledger configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``.  Components receive the resulting
    ``StockLedgerConfig`` instead of reading files or environment variables
    themselves.

Architecture position:
    Configuration -- sits beside ``stock_kernel``.  The kernel only refers
    to ``StockLedgerConfig`` for type checking (``init_engine_from_config``).

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigurationError`` -- unknown key or invalid value.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``STOCK_CONFIG_TRACE`` log entry naming the source file and the
    database dialect in use (never the full URL, which may hold
    credentials).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from sqlalchemy.engine import make_url

from stock_config.loader import load_config
from stock_config.schema import StockLedgerConfig

_logger = logging.getLogger("stock_kernel.config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "sets" / "default.yaml"

__all__ = [
    "StockLedgerConfig",
    "get_active_config",
    "load_config",
]


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> StockLedgerConfig:
    """The public configuration entrypoint.

    Resolution order for the file: *config_path*, then the
    ``STOCK_LEDGER_CONFIG`` environment variable, then
    ``stock_config/sets/default.yaml``.  Environment overrides are applied
    on top (see ``stock_config.loader``).
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get("STOCK_LEDGER_CONFIG") or _DEFAULT_CONFIG_FILE)

    config = load_config(path, environ=env)

    _logger.info(
        "STOCK_CONFIG_TRACE",
        extra={
            "trace_type": "STOCK_CONFIG_TRACE",
            "config_path": str(path),
            "dialect": make_url(config.database_url).get_backend_name(),
            "log_level": config.log_level,
            "default_safety_stock": config.default_safety_stock,
        },
    )
    return config
