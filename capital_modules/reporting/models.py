"""
Financial Reporting Domain Models (``capital_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for report outputs: trial balance,
profit and loss, balance sheet, and the investment analytics (project
summary, investor portfolio, cash-flow statement).

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by the
pure functions in ``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ReportType(str, Enum):
    TRIAL_BALANCE = "trial_balance"
    PROFIT_AND_LOSS = "profit_and_loss"
    BALANCE_SHEET = "balance_sheet"
    PROJECT_SUMMARY = "project_summary"
    INVESTOR_PORTFOLIO = "investor_portfolio"
    CASH_FLOW = "cash_flow"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every ledger report."""

    report_type: ReportType
    as_of_date: date
    generated_at: str  # ISO timestamp from the injected clock
    period_start: date | None = None
    period_end: date | None = None


# =========================================================================
# Ledger statements
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLineItem:
    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    debit_balance: Decimal
    credit_balance: Decimal
    net_balance: Decimal  # on the account's normal side


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    lines: tuple[TrialBalanceLineItem, ...]
    total_debits: Decimal
    total_credits: Decimal
    is_balanced: bool


@dataclass(frozen=True)
class ReportSection:
    label: str
    lines: tuple[TrialBalanceLineItem, ...]
    total: Decimal


@dataclass(frozen=True)
class ProfitAndLossReport:
    metadata: ReportMetadata
    revenue: ReportSection
    expenses: ReportSection
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet as of a cutoff.  Revenue less expense to the cutoff is
    carried in equity as ``current_earnings``.
    """

    metadata: ReportMetadata
    assets: ReportSection
    liabilities: ReportSection
    equity: ReportSection
    current_earnings: Decimal
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


# =========================================================================
# Investment analytics
# =========================================================================


@dataclass(frozen=True)
class ProjectSummary:
    project_id: UUID
    project_name: str
    status: str
    target_amount: Decimal
    raised_amount: Decimal
    funding_percentage: Decimal
    investor_count: int
    active_investor_count: int
    total_invested: Decimal
    total_distributions_paid: Decimal
    roi: Decimal
    discount_rate: Decimal
    npv: Decimal
    irr_percent: Decimal
    irr_converged: bool
    milestone_count: int = 0
    milestone_completion_avg: Decimal = Decimal("0")
    hurdle_rate: Decimal | None = None


@dataclass(frozen=True)
class InvestmentPerformance:
    investment_id: UUID
    project_id: UUID
    amount: Decimal
    equity_percentage: Decimal
    status: str
    investment_date: date
    actual_return_amount: Decimal
    roi: Decimal


@dataclass(frozen=True)
class InvestorPortfolio:
    investor_id: UUID
    investments: tuple[InvestmentPerformance, ...]
    total_invested: Decimal
    total_returns: Decimal
    portfolio_roi: Decimal


@dataclass(frozen=True)
class CashFlowPeriod:
    period_number: int
    period_date: date
    projected_inflow: Decimal
    projected_outflow: Decimal
    actual_inflow: Decimal
    actual_outflow: Decimal
    projected_net: Decimal
    actual_net: Decimal
    inflow_variance: Decimal
    outflow_variance: Decimal
    description: str | None = None


@dataclass(frozen=True)
class CashFlowStatement:
    project_id: UUID
    periods: tuple[CashFlowPeriod, ...]
    total_projected_net: Decimal
    total_actual_net: Decimal
