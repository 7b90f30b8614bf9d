"""
Workflow tests.

Structural checks over every lifecycle state machine plus the transitions
the services depend on.
"""

import pytest

from capital_kernel.domain.workflow import Transition, Workflow
from capital_kernel.exceptions import InvalidTransitionError
from capital_modules.investment.workflows import (
    DISTRIBUTION_WORKFLOW,
    INVESTMENT_WORKFLOW,
    KYC_WORKFLOW,
    MILESTONE_WORKFLOW,
    PROJECT_WORKFLOW,
)
from capital_modules.membership.workflows import FEE_INVOICE_WORKFLOW
from capital_modules.shareholders.workflows import (
    ALLOCATION_WORKFLOW,
    CAPITAL_CALL_WORKFLOW,
    PAYMENT_WORKFLOW,
)

ALL_WORKFLOWS = [
    PROJECT_WORKFLOW,
    INVESTMENT_WORKFLOW,
    DISTRIBUTION_WORKFLOW,
    KYC_WORKFLOW,
    MILESTONE_WORKFLOW,
    ALLOCATION_WORKFLOW,
    CAPITAL_CALL_WORKFLOW,
    PAYMENT_WORKFLOW,
    FEE_INVOICE_WORKFLOW,
]


@pytest.mark.parametrize("workflow", ALL_WORKFLOWS, ids=lambda w: w.name)
class TestWorkflowStructure:

    def test_terminal_states_have_no_exits(self, workflow):
        for state in workflow.terminal_states:
            assert workflow.allowed_actions(state) == ()

    def test_actions_unique_per_state(self, workflow):
        seen = set()
        for t in workflow.transitions:
            assert (t.from_state, t.action) not in seen
            seen.add((t.from_state, t.action))

    def test_initial_state_has_exits(self, workflow):
        assert workflow.allowed_actions(workflow.initial_state)

    def test_declares_its_states(self, workflow):
        used = {t.from_state for t in workflow.transitions} | {t.to_state for t in workflow.transitions}
        assert used <= set(workflow.states)


class TestWorkflowValidation:

    def test_unknown_initial_state_rejected(self):
        with pytest.raises(ValueError):
            Workflow("w", "d", initial_state="x", states=("a",), transitions=())

    def test_transition_to_unknown_state_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                "w", "d", initial_state="a", states=("a",),
                transitions=(Transition("a", "b", action="go"),),
            )

    def test_terminal_state_with_exit_rejected(self):
        with pytest.raises(ValueError):
            Workflow(
                "w", "d", initial_state="a", states=("a", "b"),
                transitions=(Transition("b", "a", action="back"),),
                terminal_states=("b",),
            )


class TestRequire:

    def test_returns_transition(self):
        t = INVESTMENT_WORKFLOW.require("active", "exit", "inv-1")
        assert t.to_state == "exited"
        assert t.posts_entry

    def test_second_exit_rejected(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            INVESTMENT_WORKFLOW.require("exited", "exit", "inv-1")
        assert exc_info.value.current_state == "exited"
        assert exc_info.value.category == "BAD_REQUEST"

    def test_paid_payment_cannot_be_waived(self):
        assert PAYMENT_WORKFLOW.find("paid", "waive") is None

    def test_project_fully_funded_only_from_funding(self):
        assert PROJECT_WORKFLOW.find("funding", "fully_fund").to_state == "active"
        assert PROJECT_WORKFLOW.find("draft", "fully_fund") is None

    def test_capital_call_partial_then_full(self):
        assert CAPITAL_CALL_WORKFLOW.find("issued", "receive_partial").to_state == "partially_paid"
        assert CAPITAL_CALL_WORKFLOW.find("partially_paid", "receive_full").to_state == "fully_paid"
        assert CAPITAL_CALL_WORKFLOW.find("partially_paid", "receive_partial") is None

    def test_fee_invoice_settles_from_overdue(self):
        assert FEE_INVOICE_WORKFLOW.find("overdue", "pay").posts_entry
        assert FEE_INVOICE_WORKFLOW.find("waived", "pay") is None
        assert FEE_INVOICE_WORKFLOW.find("overdue", "mark_overdue") is None

    def test_milestone_resumes_after_delay(self):
        assert MILESTONE_WORKFLOW.find("delayed", "start").to_state == "in_progress"
        assert MILESTONE_WORKFLOW.find("completed", "delay") is None
