"""
Tests for JSON-line logging.

Covers:
- Record shape: fixed head, bound context, extras, error object
- LogContext field whitelist and nesting
- configure_logging installing exactly one handler of its own
- Context reaching records emitted by ledger postings
"""

import json
import logging
import threading
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from capital_kernel.exceptions import AlreadyPaidError, InvalidAmountError
from capital_kernel.logging_config import (
    CONTEXT_FIELDS,
    JsonLineFormatter,
    LogContext,
    configure_logging,
    get_logger,
    reset_logging,
)
from capital_modules.investment.models import InvestmentStatus


@pytest.fixture
def lines():
    """Reinstall logging on a private stream; yields a reader of parsed lines."""
    stream = StringIO()
    reset_logging()
    configure_logging(stream=stream, level=logging.DEBUG)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield _read
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _one(read, event: str) -> dict:
    (record,) = [r for r in read() if r["event"] == event]
    return record


class TestRecordShape:

    def test_head_fields(self, lines):
        get_logger("ledger").info("entry_posted")

        record = _one(lines, "entry_posted")
        assert record["level"] == "INFO"
        assert record["logger"] == "capital_kernel.ledger"
        assert record["ts"].endswith("+00:00")

    def test_extras_are_made_json_safe(self, lines):
        project_id = uuid4()
        get_logger("investment").info(
            "investment_recorded",
            extra={
                "project_id_extra": project_id,
                "amount": Decimal("100000.00"),
                "investment_date": date(2024, 3, 1),
                "status": InvestmentStatus.ACTIVE,
                "holders": (1, 2),
                "line_count": 2,
            },
        )

        record = _one(lines, "investment_recorded")
        assert record["project_id_extra"] == str(project_id)
        assert record["amount"] == "100000.00"
        assert record["investment_date"] == "2024-03-01"
        assert record["status"] == "active"
        assert record["holders"] == [1, 2]
        assert record["line_count"] == 2

    def test_bound_context_is_flattened_into_record(self, lines):
        with LogContext.bind(procedure="invest", project_id="p-1"):
            get_logger("router").info("procedure_completed")

        record = _one(lines, "procedure_completed")
        assert record["procedure"] == "invest"
        assert record["project_id"] == "p-1"
        assert "investor_id" not in record

    def test_engine_error_rendered_as_object(self, lines):
        try:
            raise AlreadyPaidError("Distribution", "d-1")
        except AlreadyPaidError:
            get_logger("investment").exception("payment_rejected")

        error = _one(lines, "payment_rejected")["error"]
        assert error["type"] == "AlreadyPaidError"
        assert error["code"] == "ALREADY_PAID"
        assert error["category"] == "BAD_REQUEST"
        assert error["entity"] == "Distribution"
        assert error["entity_id"] == "d-1"

    def test_decimal_attribute_on_error(self, lines):
        try:
            raise InvalidAmountError("amount", Decimal("-5"))
        except InvalidAmountError:
            get_logger("investment").warning("rejected", exc_info=True)

        record = _one(lines, "rejected")
        assert record["error"]["value"] == "-5"
        assert "Traceback" in record["traceback"]

    def test_plain_exception_has_no_category(self, lines):
        try:
            raise ValueError("Discount rate of -100% is undefined")
        except ValueError:
            get_logger("engines").error("npv_failed", exc_info=True)

        error = _one(lines, "npv_failed")["error"]
        assert error == {"type": "ValueError", "message": "Discount rate of -100% is undefined"}

    def test_below_level_dropped(self, lines):
        reset_logging()
        stream = StringIO()
        configure_logging(stream=stream, level="warning")
        logger = get_logger("reporting")
        logger.info("summary_built")
        logger.warning("irr_not_converged")

        events = [json.loads(line)["event"] for line in stream.getvalue().splitlines()]
        assert events == ["irr_not_converged"]


class TestLogContext:

    def test_only_known_fields(self):
        with pytest.raises(TypeError, match="entry_id"):
            LogContext.set(entry_id="x")
        assert LogContext.get_all() == {}

    def test_values_stringified(self):
        investor_id = uuid4()
        LogContext.set(investor_id=investor_id)
        assert LogContext.get_all() == {"investor_id": str(investor_id)}

    def test_none_leaves_field_unset(self):
        with LogContext.bind(procedure="exit", actor_id=None):
            assert LogContext.get_all() == {"procedure": "exit"}
        assert LogContext.get_all() == {}

    def test_nested_bind_restores_outer(self):
        with LogContext.bind(correlation_id="req-1", project_id="p-1"):
            with LogContext.bind(project_id="p-2", entry_number="INV-000001"):
                assert LogContext.get_all() == {
                    "correlation_id": "req-1",
                    "project_id": "p-2",
                    "entry_number": "INV-000001",
                }
            assert LogContext.get_all() == {"correlation_id": "req-1", "project_id": "p-1"}

    def test_restored_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(procedure="shares.allot"):
                raise RuntimeError("boom")
        assert LogContext.get_all() == {}

    def test_threads_do_not_share_context(self):
        LogContext.set(correlation_id="main")

        def worker():
            LogContext.set(correlation_id="worker", procedure="payments.mark_paid")

        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

        assert LogContext.get_all() == {"correlation_id": "main"}

    def test_every_field_bindable(self):
        LogContext.set(**{name: name for name in CONTEXT_FIELDS})
        assert set(LogContext.get_all()) == set(CONTEXT_FIELDS)


class TestConfigureLogging:

    def test_idempotent(self):
        reset_logging()
        h1 = logging.StreamHandler(StringIO())
        h2 = logging.StreamHandler(StringIO())

        try:
            assert configure_logging(handler=h1) is h1
            assert configure_logging(handler=h2) is h1

            handlers = logging.getLogger("capital_kernel").handlers
            assert h1 in handlers
            assert h2 not in handlers
            assert isinstance(h1.formatter, JsonLineFormatter)
        finally:
            reset_logging()
            configure_logging(level=logging.DEBUG)

    def test_reset_leaves_foreign_handlers(self):
        foreign = logging.NullHandler()
        root = logging.getLogger("capital_kernel")
        root.addHandler(foreign)
        try:
            reset_logging()
            assert foreign in root.handlers
        finally:
            root.removeHandler(foreign)
            configure_logging(level=logging.DEBUG)

    def test_child_loggers_namespaced(self):
        assert get_logger("modules.investment.service").name == (
            "capital_kernel.modules.investment.service"
        )


class TestPostingContext:

    def test_investment_posting_carries_project_and_entry(
        self, investment_service, create_project, create_investor, today, captured_logs,
    ):
        project = create_project()
        investor = create_investor()

        investment_service.invest(project.id, investor.id, Decimal("1000"), today)

        (posted,) = [r for r in captured_logs() if r["event"] == "journal_entry_posted"]
        assert posted["project_id"] == str(project.id)
        assert posted["investor_id"] == str(investor.id)
        assert posted["entry_number"] == "INV-000001"
        assert LogContext.get_all() == {}
