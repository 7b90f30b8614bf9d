"""
Investment Domain Models.

Frozen value objects for the capital-raising lifecycle: projects, investors,
investments, distributions, milestones and cash-flow projections.  ORM rows in
``orm.py`` convert to these with ``to_dto()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ProjectType(str, Enum):
    REAL_ESTATE = "real_estate"
    BUSINESS_VENTURE = "business_venture"
    INFRASTRUCTURE = "infrastructure"
    FINANCIAL_INSTRUMENT = "financial_instrument"


class ProjectStatus(str, Enum):
    DRAFT = "draft"
    FUNDING = "funding"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


OPEN_FOR_INVESTMENT = (ProjectStatus.FUNDING, ProjectStatus.ACTIVE)


class InvestorType(str, Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"
    INSTITUTIONAL = "institutional"


class KycStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvestmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    EXITED = "exited"
    DEFAULTED = "defaulted"


class DistributionType(str, Enum):
    DIVIDEND = "dividend"
    INTEREST = "interest"
    CAPITAL_RETURN = "capital_return"
    PROFIT_SHARE = "profit_share"


class DistributionStatus(str, Enum):
    SCHEDULED = "scheduled"
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELAYED = "delayed"


@dataclass(frozen=True)
class InvestmentProject:
    id: UUID
    name: str
    project_type: str
    status: str
    target_amount: Decimal
    raised_amount: Decimal
    minimum_investment: Decimal | None = None
    maximum_investment: Decimal | None = None
    expected_return_rate: Decimal | None = None
    discount_rate: Decimal | None = None
    hurdle_rate: Decimal | None = None
    start_date: date | None = None
    end_date: date | None = None
    description: str | None = None
    asset_account_id: UUID | None = None
    equity_account_id: UUID | None = None
    revenue_account_id: UUID | None = None


@dataclass(frozen=True)
class Investor:
    id: UUID
    name: str
    email: str
    investor_type: str
    kyc_status: str
    kyc_approved_at: date | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Investment:
    id: UUID
    project_id: UUID
    investor_id: UUID
    amount: Decimal
    equity_percentage: Decimal
    status: str
    investment_date: date
    actual_return_amount: Decimal
    exit_date: date | None = None
    journal_entry_id: UUID | None = None
    exit_journal_entry_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class Distribution:
    id: UUID
    project_id: UUID
    investment_id: UUID
    investor_id: UUID
    amount: Decimal
    distribution_type: str
    status: str
    distribution_date: date
    period_start: date | None = None
    period_end: date | None = None
    paid_date: date | None = None
    journal_entry_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class DistributionShare:
    """One line of a distribution preview (no rows written)."""

    investment_id: UUID
    investor_id: UUID
    equity_percentage: Decimal
    amount: Decimal


@dataclass(frozen=True)
class ProjectMilestone:
    id: UUID
    project_id: UUID
    name: str
    status: str
    completion_percentage: int
    planned_date: date | None = None
    actual_date: date | None = None
    budget_allocated: Decimal | None = None
    actual_cost: Decimal | None = None
    description: str | None = None
    notes: str | None = None

    @property
    def cost_variance(self) -> Decimal | None:
        if self.budget_allocated is None or self.actual_cost is None:
            return None
        return self.actual_cost - self.budget_allocated


@dataclass(frozen=True)
class CashFlowProjection:
    id: UUID
    project_id: UUID
    period_number: int
    period_date: date
    projected_inflow: Decimal
    projected_outflow: Decimal
    actual_inflow: Decimal
    actual_outflow: Decimal
    description: str | None = None

    @property
    def inflow_variance(self) -> Decimal:
        return self.actual_inflow - self.projected_inflow

    @property
    def outflow_variance(self) -> Decimal:
        return self.actual_outflow - self.projected_outflow
