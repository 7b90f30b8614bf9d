"""
Investment module: projects, investors, investments, distributions,
milestones and the equity recalculation step.
"""

from capital_modules.investment.equity import EquityRecalculationService
from capital_modules.investment.milestones import MilestoneService
from capital_modules.investment.models import (
    CashFlowProjection,
    Distribution,
    DistributionShare,
    DistributionStatus,
    DistributionType,
    Investment,
    InvestmentProject,
    InvestmentStatus,
    Investor,
    InvestorType,
    KycStatus,
    MilestoneStatus,
    ProjectMilestone,
    ProjectStatus,
    ProjectType,
)
from capital_modules.investment.projects import InvestorService, ProjectService
from capital_modules.investment.service import InvestmentService

__all__ = [
    "CashFlowProjection",
    "Distribution",
    "DistributionShare",
    "DistributionStatus",
    "DistributionType",
    "EquityRecalculationService",
    "Investment",
    "InvestmentProject",
    "InvestmentService",
    "InvestmentStatus",
    "Investor",
    "InvestorService",
    "InvestorType",
    "KycStatus",
    "MilestoneService",
    "MilestoneStatus",
    "ProjectMilestone",
    "ProjectService",
    "ProjectStatus",
    "ProjectType",
]
