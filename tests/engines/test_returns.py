"""
Tests for the returns engine: IRR, NPV, ROI and cash-flow series.

Covers:
- Reference IRR over an annuity
- Convergence signal when Newton-Raphson cannot find a root
- NPV discounting with t = 0 for the first flow
- ROI including the zero-investment case
- Property: NPV at the returned IRR is (near) zero
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from capital_engines.returns import (
    IrrResult,
    irr,
    npv,
    project_cash_flow_series,
    roi,
)


def D(value: str) -> Decimal:
    return Decimal(value)


class TestIrr:

    def test_annuity_reference_rate(self):
        """-1000 followed by five 250s converges to roughly 7.9%."""
        result = irr([D("-1000")] + [D("250")] * 5)

        assert isinstance(result, IrrResult)
        assert result.converged
        assert abs(result.rate - D("0.0791")) < D("0.001")
        assert abs(result.percent - D("7.91")) < D("0.1")

    def test_break_even_is_zero(self):
        result = irr([D("-100"), D("100")])
        assert result.converged
        assert abs(result.rate) < D("1e-8")

    def test_one_period_return(self):
        result = irr([D("-100"), D("110")])
        assert result.converged
        assert abs(result.rate - D("0.1")) < D("1e-8")

    def test_no_root_reports_not_converged(self):
        """All-positive flows have no IRR; the result says so."""
        result = irr([D("100"), D("100"), D("100")], max_iterations=20)
        assert not result.converged
        assert result.iterations <= 20

    def test_single_flow_zero_derivative(self):
        result = irr([D("-100")])
        assert not result.converged
        assert result.iterations == 0

    def test_empty_series_rejected(self):
        with pytest.raises(ValueError):
            irr([])

    def test_float_rejected(self):
        with pytest.raises(TypeError):
            irr([-1000.0, 1100.0])


class TestNpv:

    def test_first_flow_undiscounted(self):
        assert npv([D("-1000")], D("0.1")) == D("-1000")

    def test_discounting(self):
        value = npv([D("-1000"), D("1100")], D("0.1"))
        assert value == D("0")

    def test_zero_rate_is_plain_sum(self):
        assert npv([D("-5"), D("2"), D("3")], D("0")) == D("0")

    def test_minus_one_rate_rejected(self):
        with pytest.raises(ValueError):
            npv([D("1"), D("1")], D("-1"))


class TestRoi:

    def test_gain(self):
        assert roi(D("1200"), D("1000")) == D("20")

    def test_loss(self):
        assert roi(D("500"), D("1000")) == D("-50")

    def test_nothing_invested_is_zero(self):
        assert roi(D("100"), D("0")) == D("0")


class TestCashFlowSeries:

    def test_invested_taken_out_of_first_period(self):
        series = project_cash_flow_series(
            D("1000"),
            [(D("300"), D("50")), (D("400"), D("0"))],
        )
        assert series == [D("-750"), D("400")]

    def test_empty_without_periods(self):
        assert project_cash_flow_series(D("1000"), []) == []


@settings(max_examples=50, deadline=None)
@given(
    invested=st.integers(min_value=100, max_value=1_000_000),
    periods=st.integers(min_value=1, max_value=10),
    rate_bp=st.integers(min_value=0, max_value=3000),
)
def test_npv_at_irr_is_zero(invested, periods, rate_bp):
    """Build an annuity priced at a known rate; IRR must recover a root."""
    rate = Decimal(rate_bp) / Decimal("10000")
    if rate == 0:
        payment = Decimal(invested) / periods
    else:
        payment = Decimal(invested) * rate / (1 - (1 + rate) ** -periods)
    flows = [Decimal(-invested)] + [payment] * periods

    result = irr(flows)

    assert result.converged
    assert abs(npv(flows, result.rate)) < Decimal("0.0001") * invested
