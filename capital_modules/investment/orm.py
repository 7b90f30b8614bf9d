"""
Investment ORM Models (``capital_modules.investment.orm``).

Responsibility
--------------
SQLAlchemy persistence for projects, investors, investments, distributions,
milestones and cash-flow projections.  Maps to the frozen dataclasses in ``models.py``.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``capital_kernel.db.base``
and sibling ``models.py``.  MUST NOT be imported by ``capital_kernel``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from capital_kernel.db.base import TrackedBase
from capital_modules.investment.models import (
    CashFlowProjection,
    Distribution,
    DistributionStatus,
    Investment,
    InvestmentProject,
    InvestmentStatus,
    Investor,
    InvestorType,
    KycStatus,
    MilestoneStatus,
    ProjectMilestone,
    ProjectStatus,
)


# ---------------------------------------------------------------------------
# InvestmentProjectModel
# ---------------------------------------------------------------------------

class InvestmentProjectModel(TrackedBase):
    """
    ORM model for ``InvestmentProject``.

    ``raised_amount`` only grows, through ``invest``.  The three optional
    account ids decide whether investment postings reach the ledger.

    Table: ``investment_projects``
    """

    __tablename__ = "investment_projects"

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    project_type: Mapped[str] = mapped_column(String(30))
    status: Mapped[str] = mapped_column(String(20), default=ProjectStatus.DRAFT.value)
    target_amount: Mapped[Decimal]
    raised_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    minimum_investment: Mapped[Decimal | None]
    maximum_investment: Mapped[Decimal | None]
    expected_return_rate: Mapped[Decimal | None]
    discount_rate: Mapped[Decimal | None]
    hurdle_rate: Mapped[Decimal | None]
    start_date: Mapped[date | None]
    end_date: Mapped[date | None]
    asset_account_id: Mapped[UUID | None] = mapped_column(ForeignKey("accounts.id"))
    equity_account_id: Mapped[UUID | None] = mapped_column(ForeignKey("accounts.id"))
    revenue_account_id: Mapped[UUID | None] = mapped_column(ForeignKey("accounts.id"))

    __table_args__ = (
        Index("idx_investment_projects_status", "status"),
    )

    def to_dto(self) -> InvestmentProject:
        return InvestmentProject(
            id=self.id,
            name=self.name,
            project_type=self.project_type,
            status=self.status,
            target_amount=self.target_amount,
            raised_amount=self.raised_amount,
            minimum_investment=self.minimum_investment,
            maximum_investment=self.maximum_investment,
            expected_return_rate=self.expected_return_rate,
            discount_rate=self.discount_rate,
            hurdle_rate=self.hurdle_rate,
            start_date=self.start_date,
            end_date=self.end_date,
            description=self.description,
            asset_account_id=self.asset_account_id,
            equity_account_id=self.equity_account_id,
            revenue_account_id=self.revenue_account_id,
        )

    def __repr__(self) -> str:
        return (
            f"<InvestmentProjectModel(id={self.id!r}, name={self.name!r}, "
            f"status={self.status!r})>"
        )


# ---------------------------------------------------------------------------
# InvestorModel
# ---------------------------------------------------------------------------

class InvestorModel(TrackedBase):
    """
    ORM model for ``Investor``.  Only KYC-approved investors may invest or
    receive share allotments.

    Table: ``investors``
    """

    __tablename__ = "investors"

    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(320))
    investor_type: Mapped[str] = mapped_column(
        String(20), default=InvestorType.INDIVIDUAL.value,
    )
    kyc_status: Mapped[str] = mapped_column(String(20), default=KycStatus.PENDING.value)
    kyc_approved_at: Mapped[datetime | None]
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        UniqueConstraint("email", name="uq_investors_email"),
    )

    @property
    def is_kyc_approved(self) -> bool:
        return self.kyc_status == KycStatus.APPROVED

    def to_dto(self) -> Investor:
        return Investor(
            id=self.id,
            name=self.name,
            email=self.email,
            investor_type=self.investor_type,
            kyc_status=self.kyc_status,
            kyc_approved_at=self.kyc_approved_at.date() if self.kyc_approved_at else None,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<InvestorModel(id={self.id!r}, email={self.email!r})>"


# ---------------------------------------------------------------------------
# InvestmentModel
# ---------------------------------------------------------------------------

class InvestmentModel(TrackedBase):
    """
    ORM model for ``Investment``.

    ``equity_percentage`` is never set directly; EquityRecalculationService
    owns it.  ``journal_entry_id`` links the INV entry and
    ``exit_journal_entry_id`` the EXIT entry.

    Table: ``investments``
    """

    __tablename__ = "investments"

    project_id: Mapped[UUID] = mapped_column(ForeignKey("investment_projects.id"))
    investor_id: Mapped[UUID] = mapped_column(ForeignKey("investors.id"))
    amount: Mapped[Decimal]
    equity_percentage: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), default=InvestmentStatus.PENDING.value)
    investment_date: Mapped[date]
    actual_return_amount: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    exit_date: Mapped[date | None]
    journal_entry_id: Mapped[UUID | None] = mapped_column(ForeignKey("journal_entries.id"))
    exit_journal_entry_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("journal_entries.id"),
    )
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        Index("idx_investments_project_status", "project_id", "status"),
        Index("idx_investments_investor", "investor_id"),
    )

    def to_dto(self) -> Investment:
        return Investment(
            id=self.id,
            project_id=self.project_id,
            investor_id=self.investor_id,
            amount=self.amount,
            equity_percentage=self.equity_percentage,
            status=self.status,
            investment_date=self.investment_date,
            actual_return_amount=self.actual_return_amount,
            exit_date=self.exit_date,
            journal_entry_id=self.journal_entry_id,
            exit_journal_entry_id=self.exit_journal_entry_id,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<InvestmentModel(id={self.id!r}, amount={self.amount!r}, "
            f"status={self.status!r})>"
        )


# ---------------------------------------------------------------------------
# DistributionModel
# ---------------------------------------------------------------------------

class DistributionModel(TrackedBase):
    """
    ORM model for ``Distribution``.

    Table: ``distributions``
    """

    __tablename__ = "distributions"

    project_id: Mapped[UUID] = mapped_column(ForeignKey("investment_projects.id"))
    investment_id: Mapped[UUID] = mapped_column(ForeignKey("investments.id"))
    investor_id: Mapped[UUID] = mapped_column(ForeignKey("investors.id"))
    amount: Mapped[Decimal]
    distribution_type: Mapped[str] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(
        String(20), default=DistributionStatus.SCHEDULED.value,
    )
    distribution_date: Mapped[date]
    period_start: Mapped[date | None]
    period_end: Mapped[date | None]
    paid_date: Mapped[date | None]
    journal_entry_id: Mapped[UUID | None] = mapped_column(ForeignKey("journal_entries.id"))
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        Index("idx_distributions_project_status", "project_id", "status"),
        Index("idx_distributions_investment", "investment_id"),
    )

    def to_dto(self) -> Distribution:
        return Distribution(
            id=self.id,
            project_id=self.project_id,
            investment_id=self.investment_id,
            investor_id=self.investor_id,
            amount=self.amount,
            distribution_type=self.distribution_type,
            status=self.status,
            distribution_date=self.distribution_date,
            period_start=self.period_start,
            period_end=self.period_end,
            paid_date=self.paid_date,
            journal_entry_id=self.journal_entry_id,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<DistributionModel(id={self.id!r}, amount={self.amount!r}, "
            f"status={self.status!r})>"
        )


# ---------------------------------------------------------------------------
# ProjectMilestoneModel
# ---------------------------------------------------------------------------

class ProjectMilestoneModel(TrackedBase):
    """
    ORM model for ``ProjectMilestone``.  ``completion_percentage`` is a whole
    number from 0 to 100; the project summary averages it.

    Table: ``project_milestones``
    """

    __tablename__ = "project_milestones"

    project_id: Mapped[UUID] = mapped_column(ForeignKey("investment_projects.id"))
    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=MilestoneStatus.PENDING.value)
    completion_percentage: Mapped[int] = mapped_column(Integer, default=0)
    planned_date: Mapped[date | None]
    actual_date: Mapped[date | None]
    budget_allocated: Mapped[Decimal | None]
    actual_cost: Mapped[Decimal | None]
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        Index("idx_project_milestones_project_status", "project_id", "status"),
    )

    def to_dto(self) -> ProjectMilestone:
        return ProjectMilestone(
            id=self.id,
            project_id=self.project_id,
            name=self.name,
            status=self.status,
            completion_percentage=self.completion_percentage,
            planned_date=self.planned_date,
            actual_date=self.actual_date,
            budget_allocated=self.budget_allocated,
            actual_cost=self.actual_cost,
            description=self.description,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<ProjectMilestoneModel(id={self.id!r}, name={self.name!r}, "
            f"status={self.status!r})>"
        )


# ---------------------------------------------------------------------------
# CashFlowProjectionModel
# ---------------------------------------------------------------------------

class CashFlowProjectionModel(TrackedBase):
    """
    ORM model for ``CashFlowProjection`` -- projected and actual flows per
    period, the input series for project NPV/IRR.

    Table: ``cash_flow_projections``
    """

    __tablename__ = "cash_flow_projections"

    project_id: Mapped[UUID] = mapped_column(ForeignKey("investment_projects.id"))
    period_number: Mapped[int] = mapped_column(Integer)
    period_date: Mapped[date]
    projected_inflow: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    projected_outflow: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    actual_inflow: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    actual_outflow: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "project_id", "period_number", name="uq_cash_flow_projections_period",
        ),
    )

    def to_dto(self) -> CashFlowProjection:
        return CashFlowProjection(
            id=self.id,
            project_id=self.project_id,
            period_number=self.period_number,
            period_date=self.period_date,
            projected_inflow=self.projected_inflow,
            projected_outflow=self.projected_outflow,
            actual_inflow=self.actual_inflow,
            actual_outflow=self.actual_outflow,
            description=self.description,
        )
