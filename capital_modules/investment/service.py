"""
capital_modules.investment.service
==================================

Responsibility:
    The investment transaction engine: invest, exit, default, and the
    distribution lifecycle.  Each operation validates its preconditions,
    mutates domain rows, posts into the ledger through a LedgerSink when
    the project has accounts configured, and (for invest) recomputes
    equity.

Architecture:
    Module layer.  Composes kernel services (LedgerPostingService via
    ledger sinks) with the equity recalculation step and pure engines.

Invariants enforced:
    - One transaction per operation: the service only flushes.  The
      caller's ``session_scope()`` commits or rolls back everything,
      domain rows and ledger rows alike.
    - ``raised_amount`` never exceeds ``target_amount``; the project row is
      locked ``FOR UPDATE`` before the check so concurrent investments near
      the cap serialize.
    - After invest, active equity percentages of the project sum to one.
    - Every journal entry posted here is a matched debit/credit pair.

Failure modes:
    - NotFoundError subclasses for missing rows.
    - InvalidStateError subclasses for lifecycle violations (closed
      project, exiting twice, paying a paid distribution).
    - ValidationFailureError subclasses for KYC, amount range and target.

Usage::

    with session_scope() as session:
        service = InvestmentService(session, clock=clock)
        investment = service.invest(project_id, investor_id,
                                    Decimal("100000"), date(2024, 3, 1))
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from capital_config import EngineConfig, get_active_config
from capital_engines.allocation import pro_rata_split
from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.domain.clock import Clock, SystemClock
from capital_kernel.domain.values import coerce_enum
from capital_kernel.exceptions import (
    AlreadyPaidError,
    DistributionNotFoundError,
    FundingTargetExceededError,
    InvalidAmountError,
    InvalidRequestError,
    InvestmentAmountOutOfRangeError,
    InvestmentNotFoundError,
    InvestorNotFoundError,
    KycNotApprovedError,
    NoActiveInvestmentsError,
    ProjectNotFoundError,
    ProjectNotOpenError,
)
from capital_kernel.logging_config import LogContext, get_logger
from capital_kernel.services.entry_numbering import EntryNumberGenerator
from capital_kernel.services.ledger_posting_service import LedgerPostingService
from capital_kernel.services.ledger_sink import NullLedgerSink, ledger_sink_for
from capital_modules.investment.equity import EquityRecalculationService
from capital_modules.investment.models import (
    OPEN_FOR_INVESTMENT,
    DistributionShare,
    DistributionStatus,
    DistributionType,
    InvestmentStatus,
    KycStatus,
    ProjectStatus,
)
from capital_modules.investment.orm import (
    DistributionModel,
    InvestmentModel,
    InvestmentProjectModel,
    InvestorModel,
)
from capital_modules.investment.workflows import (
    DISTRIBUTION_WORKFLOW,
    INVESTMENT_WORKFLOW,
    PROJECT_WORKFLOW,
)

logger = get_logger("modules.investment.service")


class InvestmentService:
    """
    Investment transaction engine.

    Contract:
        Every public mutator runs inside the caller's transaction and either
        completes all of its writes or raises.  Nothing is committed here.

    Guarantees:
        - Money is ``Decimal``; distribution amounts are rounded to cents.
        - Ledger postings are opportunistic: a project without accounts
          simply gets no journal entries.

    Non-goals:
        - No gain/loss accounting on exit beyond the return amount.
        - No retry on failure.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        actor_provider: ActorProvider | None = None,
        config: EngineConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._actors = actor_provider or ContextActorProvider(
            self._config.ledger.system_actor
        )
        self._poster = LedgerPostingService(
            session,
            actor_provider=self._actors,
            numbering=EntryNumberGenerator(session, self._config.ledger.entry_number_width),
        )
        self._equity = EquityRecalculationService(session)

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_investment(self, investment_id: UUID) -> InvestmentModel:
        investment = self._session.get(InvestmentModel, investment_id)
        if investment is None:
            raise InvestmentNotFoundError(investment_id)
        return investment

    def list_investments(
        self,
        project_id: UUID | None = None,
        investor_id: UUID | None = None,
        status: InvestmentStatus | str | None = None,
    ) -> list[InvestmentModel]:
        query = select(InvestmentModel)
        if project_id is not None:
            query = query.where(InvestmentModel.project_id == project_id)
        if investor_id is not None:
            query = query.where(InvestmentModel.investor_id == investor_id)
        if status is not None:
            status = coerce_enum(InvestmentStatus, status, "status")
            query = query.where(InvestmentModel.status == status.value)
        query = query.order_by(InvestmentModel.investment_date, InvestmentModel.created_at)
        return list(self._session.execute(query).scalars().all())

    def get_distribution(self, distribution_id: UUID) -> DistributionModel:
        distribution = self._session.get(DistributionModel, distribution_id)
        if distribution is None:
            raise DistributionNotFoundError(distribution_id)
        return distribution

    def list_distributions(
        self,
        project_id: UUID | None = None,
        investor_id: UUID | None = None,
    ) -> list[DistributionModel]:
        query = select(DistributionModel)
        if project_id is not None:
            query = query.where(DistributionModel.project_id == project_id)
        if investor_id is not None:
            query = query.where(DistributionModel.investor_id == investor_id)
        query = query.order_by(DistributionModel.distribution_date, DistributionModel.created_at)
        return list(self._session.execute(query).scalars().all())

    def _lock_project(self, project_id: UUID) -> InvestmentProjectModel:
        project = self._session.execute(
            select(InvestmentProjectModel)
            .where(InvestmentProjectModel.id == project_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def _project(self, project_id: UUID) -> InvestmentProjectModel:
        project = self._session.get(InvestmentProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def _active_investments(self, project_id: UUID) -> list[InvestmentModel]:
        return self.list_investments(project_id=project_id, status=InvestmentStatus.ACTIVE)

    # =========================================================================
    # invest / exit / default
    # =========================================================================

    def invest(
        self,
        project_id: UUID,
        investor_id: UUID,
        amount: Decimal,
        investment_date: date,
        notes: str | None = None,
    ) -> InvestmentModel:
        """
        Record an investment, grow the project's raised amount, recompute
        equity for all active investors and post Dr asset / Cr equity.
        """
        logger.info(
            "investment_started",
            extra={
                "project_id": str(project_id),
                "investor_id": str(investor_id),
                "amount": str(amount),
            },
        )

        project = self._lock_project(project_id)
        if project.status not in [s.value for s in OPEN_FOR_INVESTMENT]:
            raise ProjectNotOpenError(project_id, project.status)

        investor = self._session.get(InvestorModel, investor_id)
        if investor is None:
            raise InvestorNotFoundError(investor_id)
        if investor.kyc_status != KycStatus.APPROVED.value:
            raise KycNotApprovedError(investor_id, investor.kyc_status)

        if amount <= 0:
            raise InvalidAmountError("amount", amount)
        minimum, maximum = project.minimum_investment, project.maximum_investment
        if (minimum is not None and amount < minimum) or (
            maximum is not None and amount > maximum
        ):
            raise InvestmentAmountOutOfRangeError(amount, minimum, maximum)

        new_raised = project.raised_amount + amount
        if new_raised > project.target_amount:
            raise FundingTargetExceededError(
                project_id, project.raised_amount, amount, project.target_amount,
            )

        actor = self._actors.current_actor()
        investment = InvestmentModel(
            project_id=project_id,
            investor_id=investor_id,
            amount=amount,
            equity_percentage=Decimal("0"),
            status=INVESTMENT_WORKFLOW.initial_state,
            investment_date=investment_date,
            actual_return_amount=Decimal("0"),
            notes=notes,
            created_by=actor,
        )
        self._session.add(investment)
        self._session.flush()
        investment.status = INVESTMENT_WORKFLOW.require(
            investment.status, "activate", investment.id,
        ).to_state

        project.raised_amount = new_raised
        if new_raised >= project.target_amount and project.status == ProjectStatus.FUNDING.value:
            project.status = PROJECT_WORKFLOW.require(
                project.status, "fully_fund", project.id,
            ).to_state
        self._session.flush()

        self._equity.recalculate(project_id)

        sink = ledger_sink_for(self._poster, project.asset_account_id, project.equity_account_id)
        with LogContext.bind(project_id=project_id, investor_id=investor_id):
            investment.journal_entry_id = sink.post(
                amount,
                investment_date,
                f"Investment in {project.name}",
                "INV",
                debit_memo="Cash received from investor",
                credit_memo="Capital contribution",
            )
        self._session.flush()

        logger.info(
            "investment_recorded",
            extra={
                "investment_id": str(investment.id),
                "project_id": str(project_id),
                "raised_amount": str(project.raised_amount),
                "project_status": project.status,
                "equity_percentage": str(investment.equity_percentage),
                "journal_entry_id": str(investment.journal_entry_id)
                if investment.journal_entry_id else None,
            },
        )
        return investment

    def exit(
        self,
        investment_id: UUID,
        actual_return_amount: Decimal,
        exit_date: date,
    ) -> InvestmentModel:
        """
        Close an active investment with its realized return.

        The return replaces ``actual_return_amount``.  Other investors'
        equity percentages are left as they are.  The EXIT entry is linked
        through ``exit_journal_entry_id``; ``journal_entry_id`` keeps the
        INV entry.
        """
        investment = self.get_investment(investment_id)
        transition = INVESTMENT_WORKFLOW.require(investment.status, "exit", investment_id)
        if actual_return_amount < 0:
            raise InvalidRequestError(
                "actual_return_amount", f"must not be negative, got {actual_return_amount}",
            )

        project = self._project(investment.project_id)
        investment.status = transition.to_state
        investment.actual_return_amount = actual_return_amount
        investment.exit_date = exit_date

        if actual_return_amount > 0:
            sink = ledger_sink_for(
                self._poster, project.equity_account_id, project.asset_account_id,
            )
        else:
            sink = NullLedgerSink()
        with LogContext.bind(project_id=project.id, investor_id=investment.investor_id):
            investment.exit_journal_entry_id = sink.post(
                actual_return_amount,
                exit_date,
                f"Investment exit from {project.name}",
                "EXIT",
                debit_memo="Return of capital",
                credit_memo="Cash paid to investor",
            )
        self._session.flush()

        logger.info(
            "investment_exited",
            extra={
                "investment_id": str(investment_id),
                "actual_return_amount": str(actual_return_amount),
                "exit_date": exit_date.isoformat(),
            },
        )
        return investment

    def mark_defaulted(self, investment_id: UUID) -> InvestmentModel:
        investment = self.get_investment(investment_id)
        investment.status = INVESTMENT_WORKFLOW.require(
            investment.status, "default", investment_id,
        ).to_state
        self._session.flush()
        logger.warning(
            "investment_defaulted",
            extra={"investment_id": str(investment_id), "amount": str(investment.amount)},
        )
        return investment

    # =========================================================================
    # Distributions
    # =========================================================================

    def calculate_distributions(
        self,
        project_id: UUID,
        total_amount: Decimal,
    ) -> list[DistributionShare]:
        """Preview the split of ``total_amount`` by equity.  Writes nothing."""
        self._project(project_id)
        if total_amount <= 0:
            raise InvalidAmountError("total_amount", total_amount)
        active = self._active_investments(project_id)
        if not active:
            raise NoActiveInvestmentsError(project_id)

        amounts = pro_rata_split(
            total_amount,
            {inv.id: inv.equity_percentage for inv in active},
            self._config.ledger.money_decimal_places,
        )
        return [
            DistributionShare(
                investment_id=inv.id,
                investor_id=inv.investor_id,
                equity_percentage=inv.equity_percentage,
                amount=amounts[inv.id],
            )
            for inv in active
        ]

    def create_distributions(
        self,
        project_id: UUID,
        total_amount: Decimal,
        distribution_type: DistributionType | str,
        distribution_date: date,
        period_start: date | None = None,
        period_end: date | None = None,
        notes: str | None = None,
    ) -> list[DistributionModel]:
        """
        Create one scheduled distribution per active investment, each worth
        ``total_amount * equity_percentage``.  No ledger effect.
        """
        distribution_type = coerce_enum(DistributionType, distribution_type, "type")
        shares = self.calculate_distributions(project_id, total_amount)

        actor = self._actors.current_actor()
        created = []
        for share in shares:
            distribution = DistributionModel(
                project_id=project_id,
                investment_id=share.investment_id,
                investor_id=share.investor_id,
                amount=share.amount,
                distribution_type=distribution_type.value,
                status=DISTRIBUTION_WORKFLOW.initial_state,
                distribution_date=distribution_date,
                period_start=period_start,
                period_end=period_end,
                notes=notes,
                created_by=actor,
            )
            self._session.add(distribution)
            created.append(distribution)
        self._session.flush()

        logger.info(
            "distributions_created",
            extra={
                "project_id": str(project_id),
                "total_amount": str(total_amount),
                "distribution_type": distribution_type.value,
                "distribution_count": len(created),
            },
        )
        return created

    def mark_distribution_paid(self, distribution_id: UUID) -> DistributionModel:
        """
        Pay a distribution: post Dr revenue / Cr asset and add the amount to
        the investment's realized return.

        Raises:
            AlreadyPaidError: The distribution is already paid.
            InvalidTransitionError: The distribution was cancelled.
        """
        distribution = self.get_distribution(distribution_id)
        if distribution.status == DistributionStatus.PAID.value:
            raise AlreadyPaidError("Distribution", distribution_id)
        transition = DISTRIBUTION_WORKFLOW.require(
            distribution.status, "pay", distribution_id,
        )

        project = self._project(distribution.project_id)
        investment = self.get_investment(distribution.investment_id)

        sink = ledger_sink_for(
            self._poster, project.revenue_account_id, project.asset_account_id,
        )
        with LogContext.bind(project_id=project.id, investor_id=distribution.investor_id):
            distribution.journal_entry_id = sink.post(
                distribution.amount,
                distribution.distribution_date,
                f"Distribution payment - {project.name}",
                "DIST",
                debit_memo="Distribution to investor",
                credit_memo="Cash paid",
            )

        investment.actual_return_amount = investment.actual_return_amount + distribution.amount
        distribution.status = transition.to_state
        distribution.paid_date = self._clock.today()
        self._session.flush()

        logger.info(
            "distribution_paid",
            extra={
                "distribution_id": str(distribution_id),
                "investment_id": str(investment.id),
                "amount": str(distribution.amount),
                "actual_return_amount": str(investment.actual_return_amount),
            },
        )
        return distribution

    def approve_distribution(self, distribution_id: UUID) -> DistributionModel:
        """Move a scheduled distribution to pending (approved, awaiting payment)."""
        return self._move_distribution(distribution_id, "approve", "distribution_approved")

    def cancel_distribution(self, distribution_id: UUID) -> DistributionModel:
        """Cancel an unpaid distribution.  Paid distributions cannot be cancelled."""
        return self._move_distribution(distribution_id, "cancel", "distribution_cancelled")

    def _move_distribution(
        self, distribution_id: UUID, action: str, event: str,
    ) -> DistributionModel:
        distribution = self.get_distribution(distribution_id)
        distribution.status = DISTRIBUTION_WORKFLOW.require(
            distribution.status, action, distribution_id,
        ).to_state
        self._session.flush()
        logger.info(
            event,
            extra={
                "distribution_id": str(distribution_id),
                "amount": str(distribution.amount),
                "status": distribution.status,
            },
        )
        return distribution
