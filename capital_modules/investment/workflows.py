"""
capital_modules.investment.workflows
====================================

Responsibility:
    Declarative state machines for projects, investments, distributions,
    project milestones and investor KYC.  Services call ``WORKFLOW.require(state, action, id)``
    before every status change.

Architecture:
    Module layer.  Pure data declarations -- no I/O.
"""

from capital_kernel.domain.workflow import Guard, Transition, Workflow
from capital_kernel.logging_config import get_logger

logger = get_logger("modules.investment.workflows")


# -----------------------------------------------------------------------------
# Guards
# -----------------------------------------------------------------------------

TARGET_POSITIVE = Guard(
    name="target_positive",
    description="Project target amount is greater than zero",
)

FUNDING_TARGET_REACHED = Guard(
    name="funding_target_reached",
    description="Raised amount has reached the target amount",
)

KYC_APPROVED = Guard(
    name="kyc_approved",
    description="Investor KYC status is approved",
)


# -----------------------------------------------------------------------------
# Workflows
# -----------------------------------------------------------------------------

PROJECT_WORKFLOW = Workflow(
    name="investment_project",
    description="Capital-raising lifecycle of an investment project",
    initial_state="draft",
    states=("draft", "funding", "active", "completed", "cancelled"),
    transitions=(
        Transition("draft", "funding", action="publish", guard=TARGET_POSITIVE),
        Transition("draft", "cancelled", action="cancel"),
        Transition("funding", "active", action="fully_fund", guard=FUNDING_TARGET_REACHED),
        Transition("funding", "completed", action="complete"),
        Transition("funding", "cancelled", action="cancel"),
        Transition("active", "completed", action="complete"),
        Transition("active", "cancelled", action="cancel"),
    ),
    terminal_states=("completed", "cancelled"),
)

INVESTMENT_WORKFLOW = Workflow(
    name="investment",
    description="Lifecycle of one investor's stake in a project",
    initial_state="pending",
    states=("pending", "active", "exited", "defaulted"),
    transitions=(
        Transition("pending", "active", action="activate", guard=KYC_APPROVED, posts_entry=True),
        Transition("active", "exited", action="exit", posts_entry=True),
        Transition("active", "defaulted", action="default"),
    ),
    terminal_states=("exited", "defaulted"),
)

DISTRIBUTION_WORKFLOW = Workflow(
    name="distribution",
    description="Payout of a share of project returns to one investment",
    initial_state="scheduled",
    states=("scheduled", "pending", "paid", "cancelled"),
    transitions=(
        Transition("scheduled", "pending", action="approve"),
        Transition("scheduled", "paid", action="pay", posts_entry=True),
        Transition("pending", "paid", action="pay", posts_entry=True),
        Transition("scheduled", "cancelled", action="cancel"),
        Transition("pending", "cancelled", action="cancel"),
    ),
    terminal_states=("paid", "cancelled"),
)

MILESTONE_WORKFLOW = Workflow(
    name="project_milestone",
    description="Progress of one delivery milestone of a project",
    initial_state="pending",
    states=("pending", "in_progress", "delayed", "completed"),
    transitions=(
        Transition("pending", "in_progress", action="start"),
        Transition("pending", "delayed", action="delay"),
        Transition("in_progress", "delayed", action="delay"),
        Transition("delayed", "in_progress", action="start"),
        Transition("pending", "completed", action="complete"),
        Transition("in_progress", "completed", action="complete"),
        Transition("delayed", "completed", action="complete"),
    ),
    terminal_states=("completed",),
)

KYC_WORKFLOW = Workflow(
    name="investor_kyc",
    description="Know-your-customer review of an investor",
    initial_state="pending",
    states=("pending", "approved", "rejected"),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("pending", "rejected", action="reject"),
        Transition("rejected", "approved", action="approve"),
        Transition("approved", "rejected", action="reject"),
    ),
)

logger.debug(
    "investment_workflows_registered",
    extra={
        "workflows": [
            PROJECT_WORKFLOW.name,
            INVESTMENT_WORKFLOW.name,
            DISTRIBUTION_WORKFLOW.name,
            MILESTONE_WORKFLOW.name,
            KYC_WORKFLOW.name,
        ],
    },
)
