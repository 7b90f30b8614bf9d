"""
Tests for the engine tracer.

Covers:
- Fingerprints depend on the values of the selected inputs, however they
  were passed
- One CAPITAL_ENGINE_TRACE record per call
"""

from decimal import Decimal

import pytest

from capital_engines.allocation import pro_rata_split
from capital_engines.returns import irr, npv
from capital_engines.tracer import compute_input_fingerprint, traced_engine


def _fingerprints(captured_logs, engine_name: str) -> list[str]:
    return [
        r["input_fingerprint"]
        for r in captured_logs()
        if r["event"] == "CAPITAL_ENGINE_TRACE" and r["engine_name"] == engine_name
    ]


class TestFingerprint:

    def test_positional_calls_with_different_inputs_differ(self, captured_logs):
        npv([Decimal("-1000"), Decimal("600"), Decimal("600")], Decimal("0.10"))
        npv([Decimal("-5000"), Decimal("100")], Decimal("0.05"))

        first, second = _fingerprints(captured_logs, "npv")
        assert first != second
        assert first != compute_input_fingerprint(("cash_flows", "rate"), {})

    def test_positional_and_keyword_calls_agree(self, captured_logs):
        flows = [Decimal("-1000"), Decimal("600"), Decimal("600")]
        npv(flows, Decimal("0.10"))
        npv(cash_flows=flows, rate=Decimal("0.10"))

        first, second = _fingerprints(captured_logs, "npv")
        assert first == second

    def test_defaults_are_fingerprinted(self, captured_logs):
        flows = [Decimal("-1000")] + [Decimal("250")] * 5
        irr(flows)
        irr(flows, Decimal("0.1"))
        irr(flows, Decimal("0.3"))

        implicit, explicit, other = _fingerprints(captured_logs, "irr")
        assert implicit == explicit
        assert implicit != other

    def test_split_weights_change_fingerprint(self, captured_logs):
        pro_rata_split(Decimal("100"), {"a": Decimal("0.5"), "b": Decimal("0.5")})
        pro_rata_split(Decimal("100"), {"a": Decimal("0.2"), "b": Decimal("0.8")})

        first, second = _fingerprints(captured_logs, "pro_rata_split")
        assert first != second

    def test_mapping_order_ignored(self):
        fields = ("weights",)
        assert compute_input_fingerprint(fields, {"weights": {"a": 1, "b": 2}}) == (
            compute_input_fingerprint(fields, {"weights": {"b": 2, "a": 1}})
        )


class TestTracedEngine:

    def test_record_fields(self, captured_logs):
        @traced_engine("double", "2.1", fingerprint_fields=("value",))
        def double(value):
            return value * 2

        assert double(Decimal("4")) == Decimal("8")

        (record,) = [r for r in captured_logs() if r["event"] == "CAPITAL_ENGINE_TRACE"]
        assert record["engine_name"] == "double"
        assert record["engine_version"] == "2.1"
        assert record["input_fingerprint"] == compute_input_fingerprint(
            ("value",), {"value": Decimal("4")},
        )
        assert record["duration_ms"] >= 0

    def test_unbindable_arguments_raise(self):
        @traced_engine("double", "1.0", fingerprint_fields=("value",))
        def double(value):
            return value * 2

        with pytest.raises(TypeError):
            double(1, 2)

    def test_no_fields_no_fingerprint(self, captured_logs):
        @traced_engine("noop", "1.0")
        def noop(*args):
            return len(args)

        assert noop(1, 2, 3) == 3
        (record,) = [r for r in captured_logs() if r["event"] == "CAPITAL_ENGINE_TRACE"]
        assert record["input_fingerprint"] == ""
