"""
capital_modules.investment.projects
===================================

Reference data for the investment lifecycle: projects (with their
cash-flow projections) and investors (with their KYC review).

Both services follow the engine's transaction rule: they flush inside the
caller's session and never commit.  Uniqueness is checked up front for a
readable error and again at flush time, where the store's IntegrityError is
translated to the matching ConflictError.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.domain.clock import Clock, SystemClock
from capital_kernel.domain.values import coerce_enum
from capital_kernel.exceptions import (
    AccountNotFoundError,
    DuplicateInvestorEmailError,
    InvalidAmountError,
    InvalidRequestError,
    InvestorNotFoundError,
    ProjectNotFoundError,
)
from capital_kernel.logging_config import get_logger
from capital_kernel.models.account import Account
from capital_modules.investment.models import (
    InvestorType,
    ProjectStatus,
    ProjectType,
)
from capital_modules.investment.orm import (
    CashFlowProjectionModel,
    InvestmentProjectModel,
    InvestorModel,
)
from capital_modules.investment.workflows import KYC_WORKFLOW, PROJECT_WORKFLOW

logger = get_logger("modules.investment.projects")

# Statuses a project may be closed into
CLOSING_STATUSES = (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)
_CLOSE_ACTIONS = {ProjectStatus.COMPLETED: "complete", ProjectStatus.CANCELLED: "cancel"}


class ProjectService:
    """Creates, publishes and closes investment projects."""

    def __init__(
        self,
        session: Session,
        actor_provider: ActorProvider | None = None,
    ):
        self._session = session
        self._actors = actor_provider or ContextActorProvider()

    def get_project(self, project_id: UUID) -> InvestmentProjectModel:
        project = self._session.get(InvestmentProjectModel, project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def list_projects(
        self, status: ProjectStatus | str | None = None,
    ) -> list[InvestmentProjectModel]:
        query = select(InvestmentProjectModel).order_by(InvestmentProjectModel.created_at)
        if status is not None:
            status = coerce_enum(ProjectStatus, status, "status")
            query = query.where(InvestmentProjectModel.status == status.value)
        return list(self._session.execute(query).scalars().all())

    def create_project(
        self,
        name: str,
        project_type: ProjectType | str,
        target_amount: Decimal,
        minimum_investment: Decimal | None = None,
        maximum_investment: Decimal | None = None,
        expected_return_rate: Decimal | None = None,
        discount_rate: Decimal | None = None,
        hurdle_rate: Decimal | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        description: str | None = None,
        asset_account_id: UUID | None = None,
        equity_account_id: UUID | None = None,
        revenue_account_id: UUID | None = None,
    ) -> InvestmentProjectModel:
        project_type = coerce_enum(ProjectType, project_type, "project_type")
        if not name or not name.strip():
            raise InvalidRequestError("name", "must be non-empty")
        if target_amount < 0:
            raise InvalidRequestError("target_amount", "must not be negative")
        if (
            minimum_investment is not None
            and maximum_investment is not None
            and minimum_investment > maximum_investment
        ):
            raise InvalidRequestError(
                "minimum_investment", "must not exceed maximum_investment",
            )
        for account_id in (asset_account_id, equity_account_id, revenue_account_id):
            if account_id is not None and self._session.get(Account, account_id) is None:
                raise AccountNotFoundError(account_id)

        project = InvestmentProjectModel(
            name=name.strip(),
            project_type=project_type.value,
            status=PROJECT_WORKFLOW.initial_state,
            target_amount=target_amount,
            raised_amount=Decimal("0"),
            minimum_investment=minimum_investment,
            maximum_investment=maximum_investment,
            expected_return_rate=expected_return_rate,
            discount_rate=discount_rate,
            hurdle_rate=hurdle_rate,
            start_date=start_date,
            end_date=end_date,
            description=description,
            asset_account_id=asset_account_id,
            equity_account_id=equity_account_id,
            revenue_account_id=revenue_account_id,
            created_by=self._actors.current_actor(),
        )
        self._session.add(project)
        self._session.flush()

        logger.info(
            "project_created",
            extra={
                "project_id": str(project.id),
                "project_type": project.project_type,
                "target_amount": str(target_amount),
                "ledger_linked": asset_account_id is not None and equity_account_id is not None,
            },
        )
        return project

    def publish(self, project_id: UUID) -> InvestmentProjectModel:
        """Open a draft project for investment.  Requires a positive target."""
        project = self.get_project(project_id)
        transition = PROJECT_WORKFLOW.require(project.status, "publish", project_id)
        if project.target_amount <= 0:
            raise InvalidAmountError("target_amount", project.target_amount)
        project.status = transition.to_state
        self._session.flush()
        logger.info("project_published", extra={"project_id": str(project_id)})
        return project

    def close(
        self,
        project_id: UUID,
        status: ProjectStatus | str = ProjectStatus.COMPLETED,
    ) -> InvestmentProjectModel:
        status = coerce_enum(ProjectStatus, status, "status")
        if status not in CLOSING_STATUSES:
            raise InvalidRequestError(
                "status", f"must be one of: {', '.join(s.value for s in CLOSING_STATUSES)}",
            )
        project = self.get_project(project_id)
        project.status = PROJECT_WORKFLOW.require(
            project.status, _CLOSE_ACTIONS[status], project_id,
        ).to_state
        self._session.flush()
        logger.info(
            "project_closed",
            extra={"project_id": str(project_id), "status": project.status},
        )
        return project

    # -------------------------------------------------------------------------
    # Cash-flow projections
    # -------------------------------------------------------------------------

    def add_cash_flow(
        self,
        project_id: UUID,
        period_number: int,
        period_date: date,
        projected_inflow: Decimal = Decimal("0"),
        projected_outflow: Decimal = Decimal("0"),
        actual_inflow: Decimal = Decimal("0"),
        actual_outflow: Decimal = Decimal("0"),
        description: str | None = None,
    ) -> CashFlowProjectionModel:
        """
        Record (or replace) the projected and actual flows of one period.

        A second call for the same period updates the existing row.
        """
        self.get_project(project_id)
        if period_number < 1:
            raise InvalidRequestError("period_number", "must be at least 1")
        for field_name, value in (
            ("projected_inflow", projected_inflow),
            ("projected_outflow", projected_outflow),
            ("actual_inflow", actual_inflow),
            ("actual_outflow", actual_outflow),
        ):
            if value < 0:
                raise InvalidRequestError(field_name, "must not be negative")

        row = self._session.execute(
            select(CashFlowProjectionModel).where(
                CashFlowProjectionModel.project_id == project_id,
                CashFlowProjectionModel.period_number == period_number,
            )
        ).scalar_one_or_none()
        if row is None:
            row = CashFlowProjectionModel(
                project_id=project_id,
                period_number=period_number,
                created_by=self._actors.current_actor(),
            )
            self._session.add(row)
        row.period_date = period_date
        row.projected_inflow = projected_inflow
        row.projected_outflow = projected_outflow
        row.actual_inflow = actual_inflow
        row.actual_outflow = actual_outflow
        row.description = description
        self._session.flush()
        return row

    def cash_flows(self, project_id: UUID) -> list[CashFlowProjectionModel]:
        return list(
            self._session.execute(
                select(CashFlowProjectionModel)
                .where(CashFlowProjectionModel.project_id == project_id)
                .order_by(CashFlowProjectionModel.period_number)
            ).scalars().all()
        )


class InvestorService:
    """Investor registry and KYC review."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        actor_provider: ActorProvider | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._actors = actor_provider or ContextActorProvider()

    def get_investor(self, investor_id: UUID) -> InvestorModel:
        investor = self._session.get(InvestorModel, investor_id)
        if investor is None:
            raise InvestorNotFoundError(investor_id)
        return investor

    def list_investors(self) -> list[InvestorModel]:
        return list(
            self._session.execute(
                select(InvestorModel).order_by(InvestorModel.name)
            ).scalars().all()
        )

    def create_investor(
        self,
        name: str,
        email: str,
        investor_type: InvestorType | str = InvestorType.INDIVIDUAL,
        notes: str | None = None,
    ) -> InvestorModel:
        investor_type = coerce_enum(InvestorType, investor_type, "investor_type")
        email = (email or "").strip().lower()
        if "@" not in email:
            raise InvalidRequestError("email", "must be an email address")
        if not name or not name.strip():
            raise InvalidRequestError("name", "must be non-empty")

        existing = self._session.execute(
            select(InvestorModel.id).where(InvestorModel.email == email)
        ).first()
        if existing is not None:
            raise DuplicateInvestorEmailError(email)

        investor = InvestorModel(
            name=name.strip(),
            email=email,
            investor_type=investor_type.value,
            kyc_status=KYC_WORKFLOW.initial_state,
            notes=notes,
            created_by=self._actors.current_actor(),
        )
        self._session.add(investor)
        try:
            self._session.flush()
        except IntegrityError as exc:
            raise DuplicateInvestorEmailError(email) from exc

        logger.info(
            "investor_created",
            extra={"investor_id": str(investor.id), "investor_type": investor.investor_type},
        )
        return investor

    def approve_kyc(self, investor_id: UUID) -> InvestorModel:
        investor = self.get_investor(investor_id)
        investor.kyc_status = KYC_WORKFLOW.require(
            investor.kyc_status, "approve", investor_id,
        ).to_state
        investor.kyc_approved_at = self._clock.now()
        self._session.flush()
        logger.info("investor_kyc_approved", extra={"investor_id": str(investor_id)})
        return investor

    def reject_kyc(self, investor_id: UUID) -> InvestorModel:
        investor = self.get_investor(investor_id)
        investor.kyc_status = KYC_WORKFLOW.require(
            investor.kyc_status, "reject", investor_id,
        ).to_state
        investor.kyc_approved_at = None
        self._session.flush()
        logger.info("investor_kyc_rejected", extra={"investor_id": str(investor_id)})
        return investor
