"""
Tests for the Statistics Calculator.

Covers:
- Inbound/outbound totals over a window
- Turnover rate (Decimal, zero-balance policy)
- Range validation
- STOCK_ENGINE_TRACE emission
"""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from stock_engines.statistics import StatisticsCalculator, turnover_rate
from stock_engines.tracer import compute_input_fingerprint
from stock_kernel.domain.dtos import LedgerEntryRecord, MovementKind
from stock_kernel.exceptions import InvalidRangeError

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


def _entry(product_id, kind, quantity, seq, offset_seconds=0):
    return LedgerEntryRecord(
        id=seq,
        product_id=product_id,
        kind=kind,
        quantity=quantity,
        occurred_at=T0 + timedelta(seconds=offset_seconds),
        seq=seq,
    )


class TestTurnoverRate:
    """Tests for the turnover ratio helper."""

    def test_ratio_is_decimal(self):
        rate = turnover_rate(35, 95)
        assert isinstance(rate, Decimal)
        assert rate == Decimal(35) / Decimal(95)

    def test_zero_balance_is_zero(self):
        """Everything issued: no stock on hand means rate 0, not a division error."""
        assert turnover_rate(50, 0) == Decimal("0")

    def test_no_outbound(self):
        assert turnover_rate(0, 10) == Decimal("0")


class TestStatisticsCalculator:
    """Tests for window aggregation."""

    def setup_method(self):
        self.calculator = StatisticsCalculator()
        self.product_id = uuid4()

    def test_totals_and_rate(self):
        """100 + 30 in, 20 + 15 out leaves 95 on hand."""
        entries = [
            _entry(self.product_id, MovementKind.INBOUND, 100, 1, 0),
            _entry(self.product_id, MovementKind.INBOUND, 30, 2, 1),
            _entry(self.product_id, MovementKind.OUTBOUND, 20, 3, 2),
            _entry(self.product_id, MovementKind.OUTBOUND, 15, 4, 3),
        ]

        stats = self.calculator.compute(
            product_id=self.product_id,
            start=T0 - timedelta(days=1),
            end=T0 + timedelta(days=1),
            entries=entries,
            current_quantity=95,
        )

        assert stats.total_inbound == 130
        assert stats.total_outbound == 35
        assert stats.current_quantity == 95
        assert stats.turnover_rate == Decimal(35) / Decimal(95)
        assert stats.product_id == self.product_id

    def test_empty_window(self):
        stats = self.calculator.compute(
            product_id=self.product_id,
            start=T0,
            end=T0,
            entries=[],
            current_quantity=7,
        )

        assert stats.total_inbound == 0
        assert stats.total_outbound == 0
        assert stats.current_quantity == 7
        assert stats.turnover_rate == Decimal("0")

    def test_start_equal_to_end_is_valid(self):
        stats = self.calculator.compute(
            product_id=self.product_id,
            start=T0,
            end=T0,
            entries=[_entry(self.product_id, MovementKind.INBOUND, 5, 1)],
            current_quantity=5,
        )
        assert stats.total_inbound == 5

    def test_start_after_end_rejected(self):
        with pytest.raises(InvalidRangeError) as exc_info:
            self.calculator.compute(
                product_id=self.product_id,
                start=T0 + timedelta(seconds=1),
                end=T0,
                entries=[],
                current_quantity=0,
            )
        assert exc_info.value.code == "INVALID_RANGE"

    def test_negative_current_quantity_rejected(self):
        with pytest.raises(ValueError):
            self.calculator.compute(
                product_id=self.product_id,
                start=T0,
                end=T0,
                entries=[],
                current_quantity=-1,
            )

    def test_deterministic(self):
        entries = [_entry(self.product_id, MovementKind.OUTBOUND, 3, 1)]
        kwargs = dict(
            product_id=self.product_id,
            start=T0,
            end=T0,
            entries=entries,
            current_quantity=9,
        )
        assert self.calculator.compute(**kwargs) == self.calculator.compute(**kwargs)


class TestEngineTrace:
    """The calculator emits STOCK_ENGINE_TRACE with a stable fingerprint."""

    def test_trace_emitted(self, captured_logs):
        product_id = uuid4()
        StatisticsCalculator().compute(
            product_id=product_id,
            start=T0,
            end=T0,
            entries=[],
            current_quantity=1,
        )

        traces = [r for r in captured_logs() if r["message"] == "STOCK_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "inventory_statistics"
        assert traces[0]["engine_version"] == "1.0"
        assert len(traces[0]["input_fingerprint"]) == 16

    def test_fingerprint_stable(self):
        fields = ("product_id", "current_quantity")
        kwargs = {"product_id": "p", "current_quantity": 3}
        assert compute_input_fingerprint(fields, kwargs) == compute_input_fingerprint(
            fields, dict(kwargs)
        )
        assert compute_input_fingerprint(fields, kwargs) != compute_input_fingerprint(
            fields, {"product_id": "p", "current_quantity": 4}
        )

    def test_engine_metadata_on_wrapper(self):
        assert StatisticsCalculator.compute._engine_name == "inventory_statistics"
        assert StatisticsCalculator.compute._engine_version == "1.0"

    def test_trace_reports_entries_and_outcome(self, captured_logs):
        product_id = uuid4()
        entries = [
            _entry(product_id, MovementKind.INBOUND, 10, 1),
            _entry(product_id, MovementKind.OUTBOUND, 4, 2, offset_seconds=5),
        ]
        StatisticsCalculator().compute(
            product_id=product_id,
            start=T0,
            end=T0 + timedelta(minutes=1),
            entries=entries,
            current_quantity=6,
        )

        trace = [r for r in captured_logs() if r["message"] == "STOCK_ENGINE_TRACE"][0]
        assert trace["entry_count"] == 2
        assert trace["outcome"] == "ok"
        assert trace["level"] == "INFO"

    def test_failed_call_traced_with_error_code(self, captured_logs):
        with pytest.raises(InvalidRangeError):
            StatisticsCalculator().compute(
                product_id=uuid4(),
                start=T0 + timedelta(days=1),
                end=T0,
                entries=[],
                current_quantity=0,
            )

        traces = [r for r in captured_logs() if r["message"] == "STOCK_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["outcome"] == InvalidRangeError.code
        assert traces[0]["level"] == "WARNING"

    def test_fingerprint_reflects_ledger_entries(self):
        product_id = uuid4()
        fields = ("entries",)
        inbound = [_entry(product_id, MovementKind.INBOUND, 10, 1)]
        outbound = [_entry(product_id, MovementKind.OUTBOUND, 10, 1)]

        assert compute_input_fingerprint(fields, {"entries": inbound}) != compute_input_fingerprint(
            fields, {"entries": outbound}
        )
        assert compute_input_fingerprint(fields, {"entries": inbound}) != compute_input_fingerprint(
            fields, {"entries": []}
        )

    def test_fingerprint_normalizes_timezones(self):
        plus_two = timezone(timedelta(hours=2))
        same_instant = T0.astimezone(plus_two)

        assert compute_input_fingerprint(("start",), {"start": T0}) == compute_input_fingerprint(
            ("start",), {"start": same_instant}
        )
