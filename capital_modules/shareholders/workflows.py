"""
capital_modules.shareholders.workflows
======================================

State machines for allocations, capital calls and shareholder payments.
Pure declarations; the services consult them before each status change.
"""

from capital_kernel.domain.workflow import Guard, Transition, Workflow
from capital_kernel.logging_config import get_logger

logger = get_logger("modules.shareholders.workflows")

HAS_ACTIVE_SHAREHOLDERS = Guard(
    name="has_active_shareholders",
    description="The share class has at least one active allocation",
)

ALL_PAYMENTS_PAID = Guard(
    name="all_payments_paid",
    description="Every payment of the call is paid",
)

ALLOCATION_WORKFLOW = Workflow(
    name="shareholder_allocation",
    description="Holding of shares of one class by one investor",
    initial_state="active",
    states=("active", "transferred", "cancelled", "suspended"),
    transitions=(
        Transition("active", "transferred", action="transfer"),
        Transition("active", "cancelled", action="cancel"),
        Transition("active", "suspended", action="suspend"),
        Transition("suspended", "active", action="reinstate"),
    ),
    terminal_states=("transferred", "cancelled"),
)

CAPITAL_CALL_WORKFLOW = Workflow(
    name="capital_call",
    description="Per-share demand on the holders of a share class",
    initial_state="draft",
    states=("draft", "issued", "partially_paid", "fully_paid", "cancelled"),
    transitions=(
        Transition("draft", "issued", action="issue", guard=HAS_ACTIVE_SHAREHOLDERS),
        Transition("draft", "cancelled", action="cancel"),
        Transition("issued", "cancelled", action="cancel"),
        Transition("issued", "partially_paid", action="receive_partial"),
        Transition("issued", "fully_paid", action="receive_full", guard=ALL_PAYMENTS_PAID),
        Transition("partially_paid", "fully_paid", action="receive_full", guard=ALL_PAYMENTS_PAID),
    ),
    terminal_states=("fully_paid", "cancelled"),
)

PAYMENT_WORKFLOW = Workflow(
    name="shareholder_payment",
    description="Money owed by or to a shareholder",
    initial_state="pending",
    states=("pending", "partial", "paid", "overdue", "waived"),
    transitions=(
        Transition("pending", "paid", action="pay", posts_entry=True),
        Transition("partial", "paid", action="pay", posts_entry=True),
        Transition("overdue", "paid", action="pay", posts_entry=True),
        Transition("pending", "overdue", action="mark_overdue"),
        Transition("pending", "waived", action="waive"),
        Transition("partial", "waived", action="waive"),
        Transition("overdue", "waived", action="waive"),
    ),
    terminal_states=("paid", "waived"),
)

logger.debug(
    "shareholder_workflows_registered",
    extra={
        "workflows": [
            ALLOCATION_WORKFLOW.name,
            CAPITAL_CALL_WORKFLOW.name,
            PAYMENT_WORKFLOW.name,
        ],
    },
)
