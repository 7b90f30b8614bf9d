"""
capital_modules.reporting.service
=================================

Responsibility:
    Read-only reporting over the ledger and the investment rows: trial
    balance, profit and loss, balance sheet, and the returns analytics
    (IRR / NPV / ROI) behind project summaries and investor portfolios.

Architecture:
    Module layer.  Reads through ``LedgerSelector`` and plain selects,
    delegates all arithmetic to ``statements.py`` and ``capital_engines``.
    Never writes.

Invariants enforced:
    - Ledger reports only see entries with status ``posted``.
    - Money stays Decimal end to end; rendering to strings happens at the
      procedure boundary.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from capital_config import EngineConfig, get_active_config
from capital_engines.returns import IrrResult, irr, npv, project_cash_flow_series, roi
from capital_kernel.db.types import round_money
from capital_kernel.domain.clock import Clock, SystemClock
from capital_kernel.exceptions import InvestorNotFoundError, ProjectNotFoundError
from capital_kernel.logging_config import get_logger
from capital_kernel.selectors.ledger_selector import LedgerSelector
from capital_modules.investment.models import DistributionStatus, InvestmentStatus
from capital_modules.investment.orm import (
    CashFlowProjectionModel,
    DistributionModel,
    InvestmentModel,
    InvestmentProjectModel,
    InvestorModel,
    ProjectMilestoneModel,
)
from capital_modules.reporting.models import (
    BalanceSheetReport,
    CashFlowPeriod,
    CashFlowStatement,
    InvestmentPerformance,
    InvestorPortfolio,
    ProfitAndLossReport,
    ProjectSummary,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from capital_modules.reporting.statements import (
    build_balance_sheet,
    build_cash_flow_statement,
    build_profit_and_loss,
    build_trial_balance,
    funding_percentage,
)

logger = get_logger("modules.reporting.service")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


class ReportingService:
    """
    Financial statements and investment analytics.

    Contract:
        Every method is a pure read inside the caller's session.

    Non-goals:
        - No caching; reports are recomputed on every call.
        - No comparative periods.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._ledger = LedgerSelector(session)

    def _metadata(
        self,
        report_type: ReportType,
        as_of: date,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            as_of_date=as_of,
            generated_at=self._clock.now().isoformat(),
            period_start=period_start,
            period_end=period_end,
        )

    # =========================================================================
    # Ledger statements
    # =========================================================================

    def trial_balance(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> TrialBalanceReport:
        rows = self._ledger.account_activity(from_date=from_date, to_date=to_date)
        report = build_trial_balance(
            rows,
            self._metadata(
                ReportType.TRIAL_BALANCE, to_date or self._clock.today(), from_date, to_date,
            ),
            tolerance=self._config.ledger.balance_tolerance,
            include_zero_balances=self._config.reporting.include_zero_balances,
        )
        log = logger.info if report.is_balanced else logger.warning
        log(
            "trial_balance_built",
            extra={
                "total_debits": str(report.total_debits),
                "total_credits": str(report.total_credits),
                "is_balanced": report.is_balanced,
            },
        )
        return report

    def profit_and_loss(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> ProfitAndLossReport:
        rows = self._ledger.account_activity(from_date=from_date, to_date=to_date)
        return build_profit_and_loss(
            rows,
            self._metadata(
                ReportType.PROFIT_AND_LOSS, to_date or self._clock.today(), from_date, to_date,
            ),
            include_zero_balances=self._config.reporting.include_zero_balances,
        )

    def balance_sheet(self, as_of: date | None = None) -> BalanceSheetReport:
        as_of = as_of or self._clock.today()
        rows = self._ledger.account_activity(to_date=as_of)
        report = build_balance_sheet(
            rows,
            self._metadata(ReportType.BALANCE_SHEET, as_of, period_end=as_of),
            tolerance=self._config.ledger.balance_tolerance,
            include_zero_balances=self._config.reporting.include_zero_balances,
        )
        if not report.is_balanced:
            logger.warning(
                "balance_sheet_out_of_balance",
                extra={
                    "total_assets": str(report.total_assets),
                    "total_liabilities_and_equity": str(report.total_liabilities_and_equity),
                },
            )
        return report

    # =========================================================================
    # Returns calculators
    # =========================================================================

    def irr(self, cash_flows: list[Decimal], guess: Decimal | None = None) -> IrrResult:
        returns = self._config.returns
        return irr(
            cash_flows,
            guess=returns.irr_guess if guess is None else guess,
            max_iterations=returns.irr_max_iterations,
            tolerance=returns.irr_tolerance,
        )

    def npv(self, cash_flows: list[Decimal], rate: Decimal | None = None) -> Decimal:
        return npv(cash_flows, self._config.returns.default_discount_rate if rate is None else rate)

    def roi(self, returns: Decimal, invested: Decimal) -> Decimal:
        return roi(returns, invested)

    # =========================================================================
    # Investment analytics
    # =========================================================================

    def _project(self, project_id: UUID) -> InvestmentProjectModel:
        project = self._session.get(InvestmentProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def _cash_flow_rows(self, project_id: UUID) -> list[CashFlowProjectionModel]:
        return list(
            self._session.execute(
                select(CashFlowProjectionModel)
                .where(CashFlowProjectionModel.project_id == project_id)
                .order_by(CashFlowProjectionModel.period_number)
            ).scalars().all()
        )

    def project_summary(self, project_id: UUID) -> ProjectSummary:
        """
        Funding progress, distributions, ROI, NPV/IRR over the actual
        cash-flow series with invested capital taken out at t0, and the
        average milestone completion (0 when the project has none).
        """
        project = self._project(project_id)
        investments = list(
            self._session.execute(
                select(InvestmentModel).where(InvestmentModel.project_id == project_id)
            ).scalars().all()
        )
        paid_total = self._session.execute(
            select(func.coalesce(func.sum(DistributionModel.amount), 0)).where(
                DistributionModel.project_id == project_id,
                DistributionModel.status == DistributionStatus.PAID.value,
            )
        ).scalar_one()
        total_paid = Decimal(str(paid_total))
        milestone_count, completion_sum = self._session.execute(
            select(
                func.count(ProjectMilestoneModel.id),
                func.coalesce(func.sum(ProjectMilestoneModel.completion_percentage), 0),
            ).where(ProjectMilestoneModel.project_id == project_id)
        ).one()
        completion_avg = (
            round_money(Decimal(completion_sum) / milestone_count, 2)
            if milestone_count else _ZERO
        )

        total_invested = sum((inv.amount for inv in investments), _ZERO)
        series = project_cash_flow_series(
            total_invested,
            [(row.actual_inflow, row.actual_outflow) for row in self._cash_flow_rows(project_id)],
        )

        discount_rate = (
            project.discount_rate / _HUNDRED
            if project.discount_rate
            else self._config.returns.default_discount_rate
        )
        project_npv = npv(series, discount_rate) if series else _ZERO
        if len(series) > 1:
            result = self.irr(series)
            irr_percent, converged = result.percent, result.converged
        else:
            irr_percent, converged = _ZERO, False

        summary = ProjectSummary(
            project_id=project.id,
            project_name=project.name,
            status=project.status,
            target_amount=project.target_amount,
            raised_amount=project.raised_amount,
            funding_percentage=funding_percentage(project.raised_amount, project.target_amount),
            investor_count=len(investments),
            active_investor_count=sum(
                1 for inv in investments if inv.status == InvestmentStatus.ACTIVE.value
            ),
            total_invested=total_invested,
            total_distributions_paid=total_paid,
            roi=roi(total_paid, total_invested),
            discount_rate=discount_rate,
            npv=project_npv,
            irr_percent=irr_percent,
            irr_converged=converged,
            milestone_count=milestone_count,
            milestone_completion_avg=completion_avg,
            hurdle_rate=project.hurdle_rate,
        )
        if len(series) > 1 and not converged:
            logger.warning(
                "project_irr_not_converged",
                extra={"project_id": str(project_id), "periods": len(series)},
            )
        return summary

    def investor_portfolio(self, investor_id: UUID) -> InvestorPortfolio:
        if self._session.get(InvestorModel, investor_id) is None:
            raise InvestorNotFoundError(investor_id)
        investments = list(
            self._session.execute(
                select(InvestmentModel)
                .where(InvestmentModel.investor_id == investor_id)
                .order_by(InvestmentModel.investment_date, InvestmentModel.created_at)
            ).scalars().all()
        )
        performances = tuple(
            InvestmentPerformance(
                investment_id=inv.id,
                project_id=inv.project_id,
                amount=inv.amount,
                equity_percentage=inv.equity_percentage,
                status=inv.status,
                investment_date=inv.investment_date,
                actual_return_amount=inv.actual_return_amount,
                roi=roi(inv.actual_return_amount, inv.amount),
            )
            for inv in investments
        )
        total_invested = sum((p.amount for p in performances), _ZERO)
        total_returns = sum((p.actual_return_amount for p in performances), _ZERO)
        return InvestorPortfolio(
            investor_id=investor_id,
            investments=performances,
            total_invested=total_invested,
            total_returns=total_returns,
            portfolio_roi=roi(total_returns, total_invested),
        )

    def cash_flow_statement(self, project_id: UUID) -> CashFlowStatement:
        self._project(project_id)
        periods = []
        for row in self._cash_flow_rows(project_id):
            dto = row.to_dto()
            periods.append(
                CashFlowPeriod(
                    period_number=dto.period_number,
                    period_date=dto.period_date,
                    projected_inflow=dto.projected_inflow,
                    projected_outflow=dto.projected_outflow,
                    actual_inflow=dto.actual_inflow,
                    actual_outflow=dto.actual_outflow,
                    projected_net=dto.projected_inflow - dto.projected_outflow,
                    actual_net=dto.actual_inflow - dto.actual_outflow,
                    inflow_variance=dto.inflow_variance,
                    outflow_variance=dto.outflow_variance,
                    description=dto.description,
                )
            )
        return build_cash_flow_statement(project_id, periods)
