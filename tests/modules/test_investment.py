"""
Tests for InvestmentService: invest, exit, default and distributions.

Covers:
- Funding to target with dilution of earlier investors
- INV / EXIT / DIST postings and their account balances
- Precondition failures (KYC, range, target, project status)
- Lifecycle rules (single exit, single payment)
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from capital_kernel.exceptions import (
    AlreadyPaidError,
    DistributionNotFoundError,
    FundingTargetExceededError,
    InvalidAmountError,
    InvalidRequestError,
    InvalidTransitionError,
    InvestmentAmountOutOfRangeError,
    InvestmentNotFoundError,
    InvestorNotFoundError,
    KycNotApprovedError,
    NoActiveInvestmentsError,
    ProjectNotFoundError,
    ProjectNotOpenError,
)
from capital_kernel.models.account import Account
from capital_kernel.selectors.journal_selector import JournalSelector


@pytest.fixture
def funded(investment_service, create_project, create_investor, today):
    """A 500,000 project funded 100,000 by X and 400,000 by Y."""
    project = create_project(target_amount="500000")
    x = create_investor("Xavier")
    y = create_investor("Yolanda")
    inv_x = investment_service.invest(project.id, x.id, Decimal("100000"), today)
    inv_y = investment_service.invest(project.id, y.id, Decimal("400000"), today)
    return project, inv_x, inv_y


class TestInvest:

    def test_first_investor_owns_everything(
        self, investment_service, create_project, create_investor, today,
    ):
        project = create_project(target_amount="500000")
        investor = create_investor("Xavier")

        investment = investment_service.invest(project.id, investor.id, Decimal("100000"), today)

        assert investment.status == "active"
        assert investment.equity_percentage == Decimal("1")
        assert project.raised_amount == Decimal("100000")
        assert project.status == "funding"

    def test_funding_to_target_dilutes_and_activates(self, funded):
        project, inv_x, inv_y = funded

        assert project.raised_amount == Decimal("500000")
        assert project.status == "active"
        assert inv_x.equity_percentage == Decimal("0.2")
        assert inv_y.equity_percentage == Decimal("0.8")

    def test_equity_sums_to_one(self, investment_service, create_project, create_investor, today):
        project = create_project(target_amount="1000")
        for amount in ("100", "250", "333.33"):
            investment_service.invest(project.id, create_investor().id, Decimal(amount), today)

        active = investment_service.list_investments(project_id=project.id, status="active")
        total = sum((inv.equity_percentage for inv in active), Decimal("0"))
        assert abs(total - 1) <= Decimal("1e-6")

    def test_posts_cash_against_equity(self, session, funded, chart):
        _, inv_x, _ = funded
        entry = JournalSelector(session).get_entry(inv_x.journal_entry_id)

        assert entry.source_type == "INV"
        assert entry.entry_number.startswith("INV-")
        assert entry.total_debit == Decimal("100000")
        assert {(ln.account_id, ln.side) for ln in entry.lines} == {
            (chart.cash, "debit"),
            (chart.equity, "credit"),
        }
        assert session.get(Account, chart.cash).current_balance == Decimal("500000")
        assert session.get(Account, chart.equity).current_balance == Decimal("500000")

    def test_investment_numbers_are_sequential(self, session, funded):
        _, inv_x, inv_y = funded
        selector = JournalSelector(session)
        first = selector.get_entry(inv_x.journal_entry_id).entry_number
        second = selector.get_entry(inv_y.journal_entry_id).entry_number
        assert (first, second) == ("INV-000001", "INV-000002")

    def test_project_without_accounts_posts_nothing(
        self, investment_service, create_project, create_investor, today,
    ):
        project = create_project(with_accounts=False)
        investment = investment_service.invest(
            project.id, create_investor().id, Decimal("1000"), today,
        )
        assert investment.journal_entry_id is None
        assert investment.status == "active"

    def test_investor_kyc_must_be_approved(
        self, investment_service, create_project, create_investor, today,
    ):
        project = create_project()
        investor = create_investor(approved=False)
        with pytest.raises(KycNotApprovedError):
            investment_service.invest(project.id, investor.id, Decimal("1000"), today)

    @pytest.mark.parametrize("amount", ["999.99", "50000.01"])
    def test_amount_outside_range(
        self, investment_service, create_project, create_investor, today, amount,
    ):
        project = create_project(
            minimum_investment=Decimal("1000"),
            maximum_investment=Decimal("50000"),
        )
        with pytest.raises(InvestmentAmountOutOfRangeError):
            investment_service.invest(
                project.id, create_investor().id, Decimal(amount), today,
            )

    def test_range_bounds_inclusive(
        self, investment_service, create_project, create_investor, today,
    ):
        project = create_project(
            minimum_investment=Decimal("1000"),
            maximum_investment=Decimal("50000"),
        )
        investment_service.invest(project.id, create_investor().id, Decimal("1000"), today)
        investment_service.invest(project.id, create_investor().id, Decimal("50000"), today)
        assert project.raised_amount == Decimal("51000")

    def test_target_cannot_be_exceeded(
        self, investment_service, create_project, create_investor, today,
    ):
        project = create_project(target_amount="1000")
        investment_service.invest(project.id, create_investor().id, Decimal("600"), today)

        with pytest.raises(FundingTargetExceededError):
            investment_service.invest(project.id, create_investor().id, Decimal("400.01"), today)
        assert project.raised_amount == Decimal("600")

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_amount(
        self, investment_service, create_project, create_investor, today, amount,
    ):
        project = create_project()
        with pytest.raises(InvalidAmountError):
            investment_service.invest(project.id, create_investor().id, Decimal(amount), today)

    def test_draft_project_not_open(
        self, investment_service, create_project, create_investor, today,
    ):
        project = create_project(publish=False)
        with pytest.raises(ProjectNotOpenError):
            investment_service.invest(project.id, create_investor().id, Decimal("10"), today)

    def test_completed_project_not_open(
        self, investment_service, project_service, create_project, create_investor, today,
    ):
        project = create_project()
        project_service.close(project.id)
        with pytest.raises(ProjectNotOpenError):
            investment_service.invest(project.id, create_investor().id, Decimal("10"), today)

    def test_unknown_project_and_investor(
        self, investment_service, create_project, create_investor, today,
    ):
        with pytest.raises(ProjectNotFoundError):
            investment_service.invest(uuid4(), create_investor().id, Decimal("10"), today)
        with pytest.raises(InvestorNotFoundError):
            investment_service.invest(create_project().id, uuid4(), Decimal("10"), today)

    def test_logs_investment(
        self, investment_service, create_project, create_investor, today, captured_logs,
    ):
        project = create_project()
        investment_service.invest(project.id, create_investor().id, Decimal("10"), today)

        messages = [r["event"] for r in captured_logs()]
        assert "investment_started" in messages
        assert "equity_recalculated" in messages
        assert "investment_recorded" in messages


class TestExit:

    def test_exit_records_return_and_posts(self, session, investment_service, funded, chart):
        _, inv_x, _ = funded

        investment = investment_service.exit(inv_x.id, Decimal("150000"), date(2025, 1, 31))

        assert investment.status == "exited"
        assert investment.actual_return_amount == Decimal("150000")
        assert investment.exit_date == date(2025, 1, 31)
        entry = JournalSelector(session).get_entry(investment.exit_journal_entry_id)
        assert entry.source_type == "EXIT"
        assert entry.entry_number == "EXIT-000001"
        assert session.get(Account, chart.cash).current_balance == Decimal("350000")
        assert session.get(Account, chart.equity).current_balance == Decimal("350000")

    def test_exit_keeps_investment_entry_link(self, session, investment_service, funded):
        _, inv_x, _ = funded
        inv_entry = inv_x.journal_entry_id

        investment = investment_service.exit(inv_x.id, Decimal("120000"), date(2025, 1, 31))

        assert investment.journal_entry_id == inv_entry
        selector = JournalSelector(session)
        assert selector.get_entry(investment.journal_entry_id).source_type == "INV"
        assert selector.get_entry(investment.exit_journal_entry_id).source_type == "EXIT"
        assert investment.to_dto().exit_journal_entry_id == investment.exit_journal_entry_id

    def test_other_equity_untouched(self, investment_service, funded):
        _, inv_x, inv_y = funded
        investment_service.exit(inv_x.id, Decimal("1"), date(2025, 1, 31))
        assert inv_y.equity_percentage == Decimal("0.8")

    def test_second_exit_rejected(self, investment_service, funded):
        _, inv_x, _ = funded
        investment_service.exit(inv_x.id, Decimal("150000"), date(2025, 1, 31))

        with pytest.raises(InvalidTransitionError):
            investment_service.exit(inv_x.id, Decimal("150000"), date(2025, 2, 28))

    def test_zero_return_posts_nothing(self, investment_service, funded):
        _, inv_x, _ = funded
        inv_entry = inv_x.journal_entry_id

        investment = investment_service.exit(inv_x.id, Decimal("0"), date(2025, 1, 31))

        assert investment.status == "exited"
        assert investment.journal_entry_id == inv_entry
        assert investment.exit_journal_entry_id is None

    def test_negative_return_rejected(self, investment_service, funded):
        _, inv_x, _ = funded
        with pytest.raises(InvalidRequestError):
            investment_service.exit(inv_x.id, Decimal("-1"), date(2025, 1, 31))
        assert inv_x.status == "active"

    def test_unknown_investment(self, investment_service):
        with pytest.raises(InvestmentNotFoundError):
            investment_service.exit(uuid4(), Decimal("1"), date(2025, 1, 31))


class TestDefault:

    def test_mark_defaulted(self, investment_service, funded):
        _, inv_x, _ = funded
        investment = investment_service.mark_defaulted(inv_x.id)
        assert investment.status == "defaulted"

    def test_defaulted_cannot_exit(self, investment_service, funded):
        _, inv_x, _ = funded
        investment_service.mark_defaulted(inv_x.id)
        with pytest.raises(InvalidTransitionError):
            investment_service.exit(inv_x.id, Decimal("1"), date(2025, 1, 31))


class TestDistributions:

    def test_preview_splits_by_equity(self, investment_service, funded):
        project, inv_x, inv_y = funded

        shares = investment_service.calculate_distributions(project.id, Decimal("10000"))

        by_investment = {s.investment_id: s.amount for s in shares}
        assert by_investment == {inv_x.id: Decimal("2000.00"), inv_y.id: Decimal("8000.00")}
        assert investment_service.list_distributions(project_id=project.id) == []

    def test_create_schedules_one_per_investment(self, investment_service, funded, today):
        project, inv_x, _ = funded

        created = investment_service.create_distributions(
            project.id, Decimal("10000"), "dividend", today,
        )

        assert len(created) == 2
        assert {d.status for d in created} == {"scheduled"}
        assert {d.distribution_type for d in created} == {"dividend"}
        assert all(d.journal_entry_id is None for d in created)
        assert sum((d.amount for d in created), Decimal("0")) == Decimal("10000")
        assert [d.investor_id for d in investment_service.list_distributions(
            investor_id=inv_x.investor_id,
        )] == [inv_x.investor_id]

    def test_mark_paid_posts_and_accrues_return(
        self, session, investment_service, funded, chart, today,
    ):
        project, inv_x, _ = funded
        created = investment_service.create_distributions(
            project.id, Decimal("10000"), "profit_share", today,
        )
        distribution = next(d for d in created if d.investment_id == inv_x.id)

        paid = investment_service.mark_distribution_paid(distribution.id)

        assert paid.status == "paid"
        assert paid.paid_date == date(2024, 6, 30)
        assert inv_x.actual_return_amount == Decimal("2000.00")
        entry = JournalSelector(session).get_entry(paid.journal_entry_id)
        assert entry.entry_number == "DIST-000001"
        assert session.get(Account, chart.revenue).current_balance == Decimal("-2000.00")
        assert session.get(Account, chart.cash).current_balance == Decimal("498000.00")

    def test_paying_twice_rejected(self, session, investment_service, funded, chart, today):
        project, _, _ = funded
        distribution = investment_service.create_distributions(
            project.id, Decimal("100"), "interest", today,
        )[0]
        investment_service.mark_distribution_paid(distribution.id)
        investment = investment_service.get_investment(distribution.investment_id)
        returned = investment.actual_return_amount
        cash = session.get(Account, chart.cash).current_balance
        revenue = session.get(Account, chart.revenue).current_balance

        with pytest.raises(AlreadyPaidError):
            investment_service.mark_distribution_paid(distribution.id)

        assert investment.actual_return_amount == returned
        assert session.get(Account, chart.cash).current_balance == cash
        assert session.get(Account, chart.revenue).current_balance == revenue
        entries = JournalSelector(session).list_entries(source_type="DIST")
        assert [e.entry_number for e in entries] == ["DIST-000001"]

    def test_no_active_investments(self, investment_service, create_project):
        project = create_project()
        with pytest.raises(NoActiveInvestmentsError):
            investment_service.calculate_distributions(project.id, Decimal("100"))

    @pytest.mark.parametrize("total", ["0", "-100"])
    def test_non_positive_total(self, investment_service, funded, total):
        project, _, _ = funded
        with pytest.raises(InvalidAmountError):
            investment_service.calculate_distributions(project.id, Decimal(total))

    def test_unknown_type_rejected(self, investment_service, funded, today):
        project, _, _ = funded
        with pytest.raises(InvalidRequestError):
            investment_service.create_distributions(
                project.id, Decimal("100"), "bonus", today,
            )

    def test_exited_investment_excluded(self, investment_service, funded):
        project, inv_x, inv_y = funded
        investment_service.exit(inv_x.id, Decimal("0"), date(2025, 1, 1))

        shares = investment_service.calculate_distributions(project.id, Decimal("1000"))

        assert [s.investment_id for s in shares] == [inv_y.id]
        assert shares[0].amount == Decimal("800.00")

    def test_approved_distribution_can_be_paid(self, investment_service, funded, today):
        project, _, _ = funded
        distribution = investment_service.create_distributions(
            project.id, Decimal("100"), "dividend", today,
        )[0]

        approved = investment_service.approve_distribution(distribution.id)
        assert approved.status == "pending"

        paid = investment_service.mark_distribution_paid(distribution.id)
        assert paid.status == "paid"

    def test_approve_twice_rejected(self, investment_service, funded, today):
        project, _, _ = funded
        distribution = investment_service.create_distributions(
            project.id, Decimal("100"), "dividend", today,
        )[0]
        investment_service.approve_distribution(distribution.id)

        with pytest.raises(InvalidTransitionError):
            investment_service.approve_distribution(distribution.id)

    def test_cancelled_distribution_cannot_be_paid(
        self, session, investment_service, funded, chart, today,
    ):
        project, _, _ = funded
        distribution = investment_service.create_distributions(
            project.id, Decimal("100"), "dividend", today,
        )[0]
        investment = investment_service.get_investment(distribution.investment_id)

        cancelled = investment_service.cancel_distribution(distribution.id)

        assert cancelled.status == "cancelled"
        with pytest.raises(InvalidTransitionError):
            investment_service.mark_distribution_paid(distribution.id)
        assert investment.actual_return_amount == Decimal("0")
        assert JournalSelector(session).list_entries(source_type="DIST") == []

    def test_paid_distribution_cannot_be_cancelled(self, investment_service, funded, today):
        project, _, _ = funded
        distribution = investment_service.create_distributions(
            project.id, Decimal("100"), "dividend", today,
        )[0]
        investment_service.mark_distribution_paid(distribution.id)

        with pytest.raises(InvalidTransitionError):
            investment_service.cancel_distribution(distribution.id)

    def test_unknown_distribution(self, investment_service):
        with pytest.raises(DistributionNotFoundError):
            investment_service.approve_distribution(uuid4())
