"""
stock_engines.tracer -- STOCK_ENGINE_TRACE records for pure calculators.

``@traced_engine`` logs one record per engine call: engine name and
version, a fingerprint of the selected keyword inputs, how many ledger
entries the call saw, its duration and its outcome.  The record inherits
the caller's LogContext (correlation_id, operation, product_id), so a
statistics trace can be joined to the service call that produced it.

Fingerprints are stable across runs and processes: datetimes are
normalized to UTC, and ledger entries are reduced to
``id:kind:quantity@occurred_at``.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import time
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from stock_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def _canonicalize(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    if dataclasses.is_dataclass(value) and hasattr(value, "kind"):
        return (
            f"{value.id}:{_canonicalize(value.kind)}:{value.quantity}"
            f"@{_canonicalize(value.occurred_at)}"
        )
    # int, str, UUID, Decimal
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """16-hex-char SHA-256 prefix over the named kwargs; missing ones are "null"."""
    canonical = "|".join(
        f"{field}={_canonicalize(kwargs.get(field))}" for field in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator emitting STOCK_ENGINE_TRACE around a keyword-only engine call.

    A list/tuple ``entries`` kwarg is counted into ``entry_count``.  When
    the engine raises, the trace is logged at WARNING with the exception
    code as ``outcome`` and the exception propagates unchanged.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            entries = kwargs.get("entries")
            trace: dict[str, Any] = {
                "trace_type": "STOCK_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": compute_input_fingerprint(fingerprint_fields, kwargs),
                "entry_count": len(entries) if isinstance(entries, (list, tuple)) else None,
            }

            t0 = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                trace["outcome"] = getattr(exc, "code", type(exc).__name__)
                trace["duration_ms"] = round((time.monotonic() - t0) * 1000, 2)
                _logger.warning("STOCK_ENGINE_TRACE", extra=trace)
                raise

            trace["outcome"] = "ok"
            trace["duration_ms"] = round((time.monotonic() - t0) * 1000, 2)
            _logger.info("STOCK_ENGINE_TRACE", extra=trace)
            return result

        wrapper._engine_name = engine_name  # type: ignore[attr-defined]
        wrapper._engine_version = engine_version  # type: ignore[attr-defined]
        return wrapper

    return decorator
