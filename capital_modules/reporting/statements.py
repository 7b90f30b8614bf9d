"""
Pure financial statement transformation functions.

These functions turn per-account activity rows (from ``LedgerSelector``)
and investment figures into the report dataclasses of ``models.py``.
ZERO I/O.  ZERO side effects.

- No database access
- No clock access
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Sequence
from uuid import UUID

from capital_kernel.db.types import round_money, within_tolerance
from capital_kernel.models.account import AccountType, NormalBalance
from capital_kernel.selectors.ledger_selector import AccountActivityRow
from capital_modules.reporting.models import (
    BalanceSheetReport,
    CashFlowPeriod,
    CashFlowStatement,
    ProfitAndLossReport,
    ReportMetadata,
    ReportSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)

_ZERO = Decimal("0")


# =========================================================================
# Helpers
# =========================================================================


def compute_natural_balance(
    debit_total: Decimal,
    credit_total: Decimal,
    normal_balance: NormalBalance | str,
) -> Decimal:
    """
    Balance on the account's normal side.

    DEBIT-normal (ASSET, EXPENSE): debit_total - credit_total
    CREDIT-normal (LIABILITY, EQUITY, REVENUE): credit_total - debit_total
    """
    if normal_balance == NormalBalance.DEBIT:
        return debit_total - credit_total
    return credit_total - debit_total


def to_line_items(
    rows: Sequence[AccountActivityRow],
    include_zero_balances: bool = True,
) -> tuple[TrialBalanceLineItem, ...]:
    items = []
    for row in rows:
        natural = compute_natural_balance(row.debit_total, row.credit_total, row.normal_balance)
        if not include_zero_balances and row.debit_total == _ZERO and row.credit_total == _ZERO:
            continue
        items.append(
            TrialBalanceLineItem(
                account_id=row.account_id,
                account_code=row.account_code,
                account_name=row.account_name,
                account_type=row.account_type,
                debit_balance=row.debit_total,
                credit_balance=row.credit_total,
                net_balance=natural,
            )
        )
    return tuple(sorted(items, key=lambda x: x.account_code))


def _section(
    label: str,
    items: Sequence[TrialBalanceLineItem],
    account_type: AccountType,
) -> ReportSection:
    lines = tuple(item for item in items if item.account_type == account_type.value)
    return ReportSection(
        label=label,
        lines=lines,
        total=sum((line.net_balance for line in lines), _ZERO),
    )


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    rows: Sequence[AccountActivityRow],
    metadata: ReportMetadata,
    tolerance: Decimal,
    include_zero_balances: bool = True,
) -> TrialBalanceReport:
    """Debit and credit totals per account; balanced within ``tolerance``."""
    items = to_line_items(rows, include_zero_balances)
    total_debits = sum((item.debit_balance for item in items), _ZERO)
    total_credits = sum((item.credit_balance for item in items), _ZERO)
    return TrialBalanceReport(
        metadata=metadata,
        lines=items,
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=within_tolerance(total_debits, total_credits, tolerance),
    )


# =========================================================================
# 2. PROFIT AND LOSS
# =========================================================================


def build_profit_and_loss(
    rows: Sequence[AccountActivityRow],
    metadata: ReportMetadata,
    include_zero_balances: bool = True,
) -> ProfitAndLossReport:
    """Net income = revenue natural balances - expense natural balances."""
    items = to_line_items(rows, include_zero_balances)
    revenue = _section("Revenue", items, AccountType.REVENUE)
    expenses = _section("Expenses", items, AccountType.EXPENSE)
    return ProfitAndLossReport(
        metadata=metadata,
        revenue=revenue,
        expenses=expenses,
        total_revenue=revenue.total,
        total_expenses=expenses.total,
        net_income=revenue.total - expenses.total,
    )


# =========================================================================
# 3. BALANCE SHEET
# =========================================================================


def build_balance_sheet(
    rows: Sequence[AccountActivityRow],
    metadata: ReportMetadata,
    tolerance: Decimal,
    include_zero_balances: bool = True,
) -> BalanceSheetReport:
    """
    Assets, liabilities and equity from all activity up to the cutoff.

    Revenue and expense accounts stay off the sheet; their net is added to
    equity as current earnings so that A = L + E holds for a balanced
    ledger.
    """
    items = to_line_items(rows, include_zero_balances)
    assets = _section("Assets", items, AccountType.ASSET)
    liabilities = _section("Liabilities", items, AccountType.LIABILITY)
    equity = _section("Equity", items, AccountType.EQUITY)
    current_earnings = (
        _section("Revenue", items, AccountType.REVENUE).total
        - _section("Expenses", items, AccountType.EXPENSE).total
    )

    total_equity = equity.total + current_earnings
    total_l_and_e = liabilities.total + total_equity
    return BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        current_earnings=current_earnings,
        total_assets=assets.total,
        total_liabilities=liabilities.total,
        total_equity=total_equity,
        total_liabilities_and_equity=total_l_and_e,
        is_balanced=within_tolerance(assets.total, total_l_and_e, tolerance),
    )


# =========================================================================
# 4. CASH FLOW STATEMENT
# =========================================================================


def build_cash_flow_statement(
    project_id: UUID,
    periods: Sequence[CashFlowPeriod],
) -> CashFlowStatement:
    ordered = tuple(sorted(periods, key=lambda p: p.period_number))
    return CashFlowStatement(
        project_id=project_id,
        periods=ordered,
        total_projected_net=sum((p.projected_net for p in ordered), _ZERO),
        total_actual_net=sum((p.actual_net for p in ordered), _ZERO),
    )


def funding_percentage(raised: Decimal, target: Decimal) -> Decimal:
    """Raised as a percentage of target, to two places; 0 for no target."""
    if target <= _ZERO:
        return _ZERO
    return round_money(raised / target * Decimal("100"))


# =========================================================================
# Rendering
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | bool | None:
    """
    Convert any report dataclass to plain JSON-ready structures.

    Handles:
    - Decimal -> str in fixed-point notation (preserving precision)
    - UUID -> str
    - date / datetime -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, Decimal):
        return format(obj, "f")
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int)):
        return obj
    return str(obj)
