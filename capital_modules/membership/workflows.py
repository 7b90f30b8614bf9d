"""
capital_modules.membership.workflows
====================================

Lifecycle of a membership fee invoice.  Paid and waived are final.
"""

from capital_kernel.domain.workflow import Transition, Workflow

FEE_INVOICE_WORKFLOW = Workflow(
    name="membership_fee_invoice",
    description="Billing and settlement of one membership fee invoice",
    initial_state="pending",
    states=("pending", "overdue", "paid", "waived"),
    transitions=(
        Transition("pending", "paid", action="pay", posts_entry=True),
        Transition("overdue", "paid", action="pay", posts_entry=True),
        Transition("pending", "overdue", action="mark_overdue"),
        Transition("pending", "waived", action="waive"),
        Transition("overdue", "waived", action="waive"),
    ),
    terminal_states=("paid", "waived"),
)
