"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads a YAML configuration file, applies environment overrides, and
returns a validated ``StockLedgerConfig``.  Runtime callers go through
``stock_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown keys raise ``ConfigurationError``; there are no silently ignored
  settings.
* Environment overrides win over YAML values:

  ==============================  =====================
  Variable                        Field
  ==============================  =====================
  ``STOCK_LEDGER_DATABASE_URL``   ``database_url``
  ``DATABASE_URL``                ``database_url`` (fallback)
  ``STOCK_LEDGER_ECHO``           ``echo``
  ``STOCK_LEDGER_LOG_LEVEL``      ``log_level``
  ==============================  =====================

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import StockLedgerConfig
from stock_kernel.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(key, f"cannot parse boolean from {value!r}")


def apply_env_overrides(
    data: dict[str, Any],
    environ: Mapping[str, str],
) -> dict[str, Any]:
    """Return a copy of *data* with environment overrides applied."""
    result = dict(data)

    database_url = environ.get("STOCK_LEDGER_DATABASE_URL") or environ.get("DATABASE_URL")
    if database_url:
        result["database_url"] = database_url

    if "STOCK_LEDGER_ECHO" in environ:
        result["echo"] = parse_bool("STOCK_LEDGER_ECHO", environ["STOCK_LEDGER_ECHO"])

    if environ.get("STOCK_LEDGER_LOG_LEVEL"):
        result["log_level"] = environ["STOCK_LEDGER_LOG_LEVEL"].upper()

    return result


def parse_config(data: Mapping[str, Any]) -> StockLedgerConfig:
    """Build a StockLedgerConfig from a dict, rejecting unknown keys."""
    known = {f.name for f in fields(StockLedgerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigurationError(", ".join(unknown), "unknown configuration key")
    return StockLedgerConfig(**data)


def load_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> StockLedgerConfig:
    """
    Load configuration from *path* (optional) and the environment.

    Args:
        path: YAML file. When None, only defaults and overrides apply.
        environ: Environment mapping; defaults to ``os.environ``.
    """
    data: dict[str, Any] = {}
    if path is not None:
        data = load_yaml_file(Path(path))

    env = os.environ if environ is None else environ
    return parse_config(apply_env_overrides(data, env))
