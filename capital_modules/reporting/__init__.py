"""Reporting module: ledger statements and investment analytics."""

from capital_modules.reporting.models import (
    BalanceSheetReport,
    CashFlowStatement,
    InvestorPortfolio,
    ProfitAndLossReport,
    ProjectSummary,
    ReportType,
    TrialBalanceReport,
)
from capital_modules.reporting.service import ReportingService
from capital_modules.reporting.statements import render_to_dict

__all__ = [
    "BalanceSheetReport",
    "CashFlowStatement",
    "InvestorPortfolio",
    "ProfitAndLossReport",
    "ProjectSummary",
    "ReportType",
    "ReportingService",
    "TrialBalanceReport",
    "render_to_dict",
]
