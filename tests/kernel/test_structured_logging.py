"""Tests for the structured logging system (stock_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from io import StringIO
from uuid import uuid4

import pytest

from stock_kernel.exceptions import InvalidTransferStateError
from stock_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from stock_modules.transfers.models import TransferState


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite configuration."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


def _parse_log(stream: StringIO) -> dict:
    return _parse_all_logs(stream)[0]


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "stock_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("transfer_sent", extra={"item_count": 3, "state": "SENT"})

        record = _parse_log(stream)
        assert record["item_count"] == 3
        assert record["state"] == "SENT"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", batch_id="batch-9")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["batch_id"] == "batch-9"

    def test_kernel_exception_fields_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise InvalidTransferStateError("TRF-000007", "cancel", "COMPLETED", ("DRAFT",))
        except InvalidTransferStateError:
            get_logger("test").error("transfer_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "INVALID_STATE"
        assert record["exc_type"] == "InvalidTransferStateError"
        assert record["exc_transfer_number"] == "TRF-000007"
        assert record["exc_current_state"] == "COMPLETED"
        assert "traceback" in record

    def test_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("typed", extra={
            "transfer_id": uid,
            "expected": date(2024, 3, 1),
            "state": TransferState.SENT,
        })

        record = _parse_log(stream)
        assert record["transfer_id"] == str(uid)
        assert record["expected"] == "2024-03-01"
        assert record["state"] == "SENT"

    def test_debug_filtered_at_default_level(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second")
        logger.debug("third")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["first", "second"]


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", transfer_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "transfer_id": "y"}

    def test_clear(self):
        LogContext.set(actor_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(transfer_id="outer")
        with LogContext.bind(transfer_id="inner"):
            assert LogContext.get_all()["transfer_id"] == "inner"
        assert LogContext.get_all()["transfer_id"] == "outer"

    def test_bind_converts_uuid_and_skips_none(self):
        uid = uuid4()
        with LogContext.bind(batch_id=uid, actor_id=None):
            ctx = LogContext.get_all()
            assert ctx["batch_id"] == str(uid)
            assert "actor_id" not in ctx
        assert "batch_id" not in LogContext.get_all()


class TestConfigureLogging:

    def test_idempotent(self):
        first, first_stream = _make_handler()
        second, second_stream = _make_handler()
        configure_logging(handler=first)
        configure_logging(handler=second)
        get_logger("test").info("once")

        assert len(_parse_all_logs(first_stream)) == 1
        assert second_stream.getvalue() == ""

    def test_does_not_propagate_to_root(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler)
        assert logging.getLogger("stock_kernel").propagate is False


class TestLogContextFields:

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="store"):
            LogContext.set(store="S1")
        with pytest.raises(ValueError):
            with LogContext.bind(tenant="t"):
                pass
