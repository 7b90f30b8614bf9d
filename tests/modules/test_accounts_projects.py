"""
Tests for the chart of accounts, projects and the investor registry.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from capital_kernel.exceptions import (
    AccountNotFoundError,
    DuplicateAccountCodeError,
    DuplicateInvestorEmailError,
    InvalidAmountError,
    InvalidRequestError,
    InvalidTransitionError,
    ProjectNotFoundError,
)


class TestAccounts:

    def test_normal_balance_follows_type(self, account_service):
        asset = account_service.create_account("1000", "Cash", "asset")
        equity = account_service.create_account("3000", "Capital", "equity")
        expense = account_service.create_account("6000", "Fees", "expense")

        assert asset.normal_balance == "debit"
        assert equity.normal_balance == "credit"
        assert expense.normal_balance == "debit"
        assert asset.current_balance == Decimal("0")
        assert asset.is_active

    def test_duplicate_code_conflicts(self, account_service):
        account_service.create_account("1000", "Cash", "asset")
        with pytest.raises(DuplicateAccountCodeError) as exc_info:
            account_service.create_account("1000", "Petty cash", "asset")
        assert exc_info.value.category == "CONFLICT"

    def test_unknown_type_rejected(self, account_service):
        with pytest.raises(InvalidRequestError):
            account_service.create_account("9000", "Mystery", "contra")

    def test_blank_code_rejected(self, account_service):
        with pytest.raises(InvalidRequestError):
            account_service.create_account("  ", "Blank", "asset")

    def test_lookup_by_id_and_code(self, account_service, chart):
        assert account_service.get_by_code("3100").id == chart.share_capital
        assert account_service.get_account(chart.cash).code == "1000"
        with pytest.raises(AccountNotFoundError):
            account_service.get_account(uuid4())
        with pytest.raises(AccountNotFoundError):
            account_service.get_by_code("0000")

    def test_list_filters(self, account_service, chart):
        assert [a.code for a in account_service.list_accounts("equity")] == ["3000", "3100"]
        account_service.deactivate(chart.expense)
        assert "6000" not in [a.code for a in account_service.list_accounts(active_only=True)]
        assert "6000" in [a.code for a in account_service.list_accounts()]

    def test_update(self, account_service, chart):
        account = account_service.update_account(
            chart.share_capital, name="Ordinary Share Capital", parent_id=chart.equity,
        )
        assert account.name == "Ordinary Share Capital"
        assert account.parent_id == chart.equity

    def test_cannot_parent_itself(self, account_service, chart):
        with pytest.raises(InvalidRequestError):
            account_service.update_account(chart.cash, parent_id=chart.cash)

    def test_seed_default_chart_is_idempotent(self, account_service, config):
        created = account_service.seed_default_chart(config)

        assert len(created) == len(config.chart_of_accounts)
        fees = account_service.get_by_code("6100")
        assert fees.parent_id == account_service.get_by_code("6000").id
        assert account_service.seed_default_chart(config) == []


class TestProjects:

    def test_create_starts_in_draft(self, create_project):
        project = create_project(publish=False)
        assert project.status == "draft"
        assert project.raised_amount == Decimal("0")
        assert project.project_type == "real_estate"

    def test_publish_opens_for_funding(self, project_service, create_project):
        project = create_project(publish=False)
        assert project_service.publish(project.id).status == "funding"

    def test_publish_needs_positive_target(self, project_service, create_project):
        project = create_project(target_amount="0", publish=False)
        with pytest.raises(InvalidAmountError):
            project_service.publish(project.id)

    def test_min_above_max_rejected(self, create_project):
        with pytest.raises(InvalidRequestError):
            create_project(
                minimum_investment=Decimal("10"), maximum_investment=Decimal("5"),
            )

    def test_unknown_account_rejected(self, create_project):
        with pytest.raises(AccountNotFoundError):
            create_project(asset_account_id=uuid4())

    def test_close_completed_and_cancelled(self, project_service, create_project):
        done = project_service.close(create_project(name="Done").id)
        dropped = project_service.close(create_project(name="Dropped").id, "cancelled")

        assert done.status == "completed"
        assert dropped.status == "cancelled"
        with pytest.raises(InvalidTransitionError):
            project_service.close(done.id)

    def test_close_to_open_status_rejected(self, project_service, create_project):
        with pytest.raises(InvalidRequestError):
            project_service.close(create_project().id, "funding")

    def test_list_by_status(self, project_service, create_project):
        create_project(name="Open")
        create_project(name="Draft", publish=False)
        assert [p.name for p in project_service.list_projects("draft")] == ["Draft"]

    def test_unknown_project(self, project_service):
        with pytest.raises(ProjectNotFoundError):
            project_service.get_project(uuid4())

    def test_cash_flows_upsert_per_period(self, project_service, create_project):
        project = create_project()
        project_service.add_cash_flow(
            project.id, 2, date(2025, 12, 31), projected_inflow=Decimal("50000"),
        )
        project_service.add_cash_flow(
            project.id, 1, date(2024, 12, 31), projected_inflow=Decimal("40000"),
        )
        project_service.add_cash_flow(
            project.id, 1, date(2024, 12, 31),
            projected_inflow=Decimal("40000"), actual_inflow=Decimal("42500"),
        )

        flows = project_service.cash_flows(project.id)

        assert [f.period_number for f in flows] == [1, 2]
        assert flows[0].actual_inflow == Decimal("42500")
        assert flows[0].to_dto().inflow_variance == Decimal("2500")

    @pytest.mark.parametrize("period", [0, -1])
    def test_cash_flow_period_starts_at_one(self, project_service, create_project, period):
        with pytest.raises(InvalidRequestError):
            project_service.add_cash_flow(create_project().id, period, date(2024, 12, 31))

    def test_negative_flow_rejected(self, project_service, create_project):
        with pytest.raises(InvalidRequestError):
            project_service.add_cash_flow(
                create_project().id, 1, date(2024, 12, 31), actual_outflow=Decimal("-1"),
            )


class TestInvestors:

    def test_new_investor_pending_kyc(self, investor_service):
        investor = investor_service.create_investor("Ada", "Ada@Example.com", "corporate")
        assert investor.kyc_status == "pending"
        assert investor.email == "ada@example.com"
        assert investor.investor_type == "corporate"

    def test_duplicate_email_conflicts(self, investor_service):
        investor_service.create_investor("Ada", "ada@example.com")
        with pytest.raises(DuplicateInvestorEmailError):
            investor_service.create_investor("Ada Again", " ADA@example.com ")

    def test_bad_email_rejected(self, investor_service):
        with pytest.raises(InvalidRequestError):
            investor_service.create_investor("Ada", "not-an-email")

    def test_kyc_approve_and_reject(self, investor_service):
        investor = investor_service.create_investor("Ada", "ada@example.com")

        investor_service.approve_kyc(investor.id)
        assert investor.kyc_status == "approved"
        assert investor.kyc_approved_at is not None

        investor_service.reject_kyc(investor.id)
        assert investor.kyc_status == "rejected"
        assert investor.kyc_approved_at is None

    def test_list_sorted_by_name(self, investor_service, create_investor):
        create_investor("Zed")
        create_investor("Amy")
        assert [i.name for i in investor_service.list_investors()] == ["Amy", "Zed"]
