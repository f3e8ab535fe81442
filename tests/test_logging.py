"""Tests for the structured logging system (stock_kernel/logging_config.py)."""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from stock_kernel.domain.dtos import MovementKind
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "stock_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("stock_outbound_recorded", extra={"seq": 42, "new_balance": 9})

        record = _parse_log(stream)
        assert record["seq"] == 42
        assert record["new_balance"] == 9

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(correlation_id="abc-123", product_id="prod-456")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["product_id"] == "prod-456"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_stock_exception_code_extracted(self):
        """Stock kernel exceptions carry .code and structured attributes."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from stock_kernel.exceptions import InsufficientStockError

        try:
            raise InsufficientStockError("p-1", 11, 10)
        except InsufficientStockError:
            logger.warning("stock_outbound_rejected", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_type"] == "InsufficientStockError"
        assert record["exc_product_id"] == "p-1"
        assert record["exc_requested"] == 11
        assert record["exc_available"] == 10

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "product_id" not in record

    def test_uuid_and_decimal_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        logger.info("with_values", extra={"entry_id": uid, "rate": Decimal("0.25")})

        record = _parse_log(stream)
        assert record["entry_id"] == str(uid)
        assert record["rate"] == "0.25"

    def test_movement_kind_serialized_by_value(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("with_kind", extra={"kind": MovementKind.OUTBOUND})

        assert _parse_log(stream)["kind"] == "outbound"

    def test_extra_overrides_context(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        with LogContext.bind(product_id="from-context"):
            logger.info("explicit", extra={"product_id": "from-extra"})

        assert _parse_log(stream)["product_id"] == "from-extra"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug record is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", product_id="y")
        ctx = LogContext.get_all()
        assert ctx == {"correlation_id": "x", "product_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "product_id" not in LogContext.get_all()
        with LogContext.bind(product_id="temp"):
            assert LogContext.get_all()["product_id"] == "temp"
        assert "product_id" not in LogContext.get_all()

    def test_bind_stringifies_values(self):
        pid = uuid4()
        with LogContext.bind(product_id=pid):
            assert LogContext.get_all()["product_id"] == str(pid)

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(correlation_id="c", tenant="ignored"):
            assert LogContext.get_all() == {"correlation_id": "c"}

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            operation="outbound",
            product_id="p",
            movement_kind=MovementKind.OUTBOUND,
        )
        ctx = LogContext.get_all()
        assert ctx == {
            "correlation_id": "c",
            "operation": "outbound",
            "product_id": "p",
            "movement_kind": "outbound",
        }

    def test_operation_binds_fresh_correlation_id(self):
        pid = uuid4()
        with LogContext.operation("inbound", pid, MovementKind.INBOUND):
            first = LogContext.get_all()
        with LogContext.operation("inbound", pid, MovementKind.INBOUND):
            second = LogContext.get_all()

        assert first["operation"] == "inbound"
        assert first["product_id"] == str(pid)
        assert first["movement_kind"] == "inbound"
        assert first["correlation_id"] != second["correlation_id"]
        assert LogContext.get_all() == {}

    def test_nested_bind_keeps_outer_correlation(self):
        with LogContext.operation("delete_product", "p"):
            outer = LogContext.get_all()["correlation_id"]
            with LogContext.bind(operation="purge_product"):
                inner = LogContext.get_all()
            assert LogContext.get_all()["operation"] == "delete_product"

        assert inner["operation"] == "purge_product"
        assert inner["correlation_id"] == outer


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("stock_kernel")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("services.stock_ledger")
        assert logger.name == "stock_kernel.services.stock_ledger"

    def test_logger_hierarchy(self):
        """Child loggers inherit the stock_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "stock_kernel.deep.nested.module"
