"""
capital_engines.returns -- IRR, NPV and ROI over cash-flow series.

Responsibility:
    Project-evaluation metrics used by the project summary and investor
    portfolio reports.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic; float inputs are rejected.
    - Cash flow ``t`` is discounted by ``(1 + rate) ** t`` with t = 0 for
      the first element.
    - IRR always reports whether Newton-Raphson converged.

Failure modes:
    - ValueError on an empty series for ``irr``.
    - TypeError on float inputs.

Usage:
    result = irr([Decimal("-1000")] + [Decimal("250")] * 5)
    result.rate        # Decimal('0.0793...')
    result.converged   # True
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Iterable, Sequence

from capital_engines.tracer import traced_engine

DEFAULT_GUESS = Decimal("0.1")
DEFAULT_MAX_ITERATIONS = 100
DEFAULT_TOLERANCE = Decimal("1e-8")

# Working precision for the iteration
_PRECISION = 34

# A rate beyond this magnitude means the iteration is running away
_DIVERGENCE_LIMIT = Decimal("1e6")

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class IrrResult:
    """Outcome of an IRR solve.

    ``rate`` is the last rate computed.  When ``converged`` is False it is a
    best-effort value and should not be presented as the IRR.
    """

    rate: Decimal
    iterations: int
    converged: bool

    @property
    def percent(self) -> Decimal:
        return self.rate * _HUNDRED


def _as_decimal(value: Decimal | int | str) -> Decimal:
    if isinstance(value, (float, bool)):
        raise TypeError(f"Cash flows must be Decimal, got {type(value).__name__}")
    return value if isinstance(value, Decimal) else Decimal(value)


def _flows(cash_flows: Iterable[Decimal | int | str]) -> list[Decimal]:
    return [_as_decimal(cf) for cf in cash_flows]


def _npv(flows: Sequence[Decimal], rate: Decimal) -> Decimal:
    base = _ONE + rate
    return sum((cf / base ** t for t, cf in enumerate(flows)), _ZERO)


def _npv_derivative(flows: Sequence[Decimal], rate: Decimal) -> Decimal:
    base = _ONE + rate
    return sum(
        (-t * cf / base ** (t + 1) for t, cf in enumerate(flows)),
        _ZERO,
    )


@traced_engine("npv", "1.0", fingerprint_fields=("cash_flows", "rate"))
def npv(cash_flows: Sequence[Decimal], rate: Decimal) -> Decimal:
    """Net present value: ``sum(cf_t / (1 + rate) ** t)``."""
    flows = _flows(cash_flows)
    rate = _as_decimal(rate)
    if rate == -_ONE:
        raise ValueError("Discount rate of -100% is undefined")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return +_npv(flows, rate)


@traced_engine("irr", "1.0", fingerprint_fields=("cash_flows", "guess"))
def irr(
    cash_flows: Sequence[Decimal],
    guess: Decimal = DEFAULT_GUESS,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> IrrResult:
    """
    Internal rate of return by Newton-Raphson on NPV.

    Iterates ``r' = r - NPV(r) / NPV'(r)`` from ``guess``.  Stops as soon as
    ``|r' - r| < tolerance`` (converged) or after ``max_iterations``.  A zero
    derivative, a rate of exactly -1 or a runaway rate ends the search
    early, unconverged.
    """
    flows = _flows(cash_flows)
    if not flows:
        raise ValueError("IRR requires at least one cash flow")

    rate = _as_decimal(guess)
    tolerance = _as_decimal(tolerance)

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        for iteration in range(1, max_iterations + 1):
            if rate == -_ONE:
                return IrrResult(rate=rate, iterations=iteration - 1, converged=False)
            derivative = _npv_derivative(flows, rate)
            if derivative == _ZERO:
                return IrrResult(rate=rate, iterations=iteration - 1, converged=False)
            new_rate = rate - _npv(flows, rate) / derivative
            if abs(new_rate) > _DIVERGENCE_LIMIT:
                return IrrResult(rate=rate, iterations=iteration, converged=False)
            if abs(new_rate - rate) < tolerance:
                return IrrResult(rate=new_rate, iterations=iteration, converged=True)
            rate = new_rate

    return IrrResult(rate=rate, iterations=max_iterations, converged=False)


def roi(returns: Decimal, invested: Decimal) -> Decimal:
    """Return on investment in percent; 0 when nothing was invested."""
    returns = _as_decimal(returns)
    invested = _as_decimal(invested)
    if invested == _ZERO:
        return _ZERO
    return (returns - invested) / invested * _HUNDRED


def project_cash_flow_series(
    total_invested: Decimal,
    period_flows: Sequence[tuple[Decimal, Decimal]],
) -> list[Decimal]:
    """
    Net (inflow - outflow) per period, with invested capital taken out of
    the first period.  Empty when there are no periods.
    """
    series = [_as_decimal(inflow) - _as_decimal(outflow) for inflow, outflow in period_flows]
    if series:
        series[0] -= _as_decimal(total_invested)
    return series
