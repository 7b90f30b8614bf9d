"""
Tests for ShareholderService: share classes, allotments, transfers and the
share register.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from capital_kernel.exceptions import (
    AllocationNotFoundError,
    AuthorizedSharesExceededError,
    DuplicateCertificateNumberError,
    DuplicateShareClassCodeError,
    InvalidAmountError,
    InvalidTransitionError,
    KycNotApprovedError,
    ShareClassNotFoundError,
)
from capital_kernel.models.account import Account
from capital_kernel.selectors.journal_selector import JournalSelector


@pytest.fixture
def ordinary(shareholder_service):
    return shareholder_service.create_share_class(
        "ORD", "Ordinary shares", authorized_shares=1000, par_value=Decimal("1"),
    )


class TestShareClasses:

    def test_create(self, ordinary):
        assert ordinary.code == "ORD"
        assert ordinary.share_class_type == "ordinary"
        assert ordinary.issued_shares == 0

    def test_duplicate_code(self, shareholder_service, ordinary):
        with pytest.raises(DuplicateShareClassCodeError) as exc_info:
            shareholder_service.create_share_class("ORD", "Again")
        assert exc_info.value.category == "CONFLICT"

    def test_list_by_code(self, shareholder_service, ordinary):
        shareholder_service.create_share_class("A-PREF", "Preference", "preference")
        assert [c.code for c in shareholder_service.list_share_classes()] == ["A-PREF", "ORD"]


class TestAllot:

    def test_allot_posts_cash_against_share_capital(
        self, session, shareholder_service, ordinary, create_investor, chart,
    ):
        allocation = shareholder_service.allot(
            create_investor().id, ordinary.id, 100, Decimal("2.50"), date(2024, 1, 15),
            certificate_number="C-001",
            cash_account_id=chart.cash,
            share_capital_account_id=chart.share_capital,
        )

        assert allocation.status == "active"
        assert allocation.total_consideration == Decimal("250.00")
        assert ordinary.issued_shares == 100
        entry = JournalSelector(session).get_entry(allocation.journal_entry_id)
        assert entry.entry_number == "SHARE-000001"
        assert session.get(Account, chart.share_capital).current_balance == Decimal("250.00")

    def test_allot_without_accounts_posts_nothing(
        self, shareholder_service, ordinary, create_investor,
    ):
        allocation = shareholder_service.allot(
            create_investor().id, ordinary.id, 10, Decimal("1"), date(2024, 1, 15),
        )
        assert allocation.journal_entry_id is None

    def test_authorized_shares_enforced(self, shareholder_service, ordinary, create_investor):
        investor = create_investor()
        shareholder_service.allot(investor.id, ordinary.id, 900, Decimal("1"), date(2024, 1, 1))

        with pytest.raises(AuthorizedSharesExceededError):
            shareholder_service.allot(investor.id, ordinary.id, 101, Decimal("1"), date(2024, 1, 2))
        assert ordinary.issued_shares == 900

    def test_allot_to_authorized_limit(self, shareholder_service, ordinary, create_investor):
        shareholder_service.allot(create_investor().id, ordinary.id, 1000, Decimal("1"), date(2024, 1, 1))
        assert ordinary.issued_shares == 1000

    def test_unlimited_class(self, shareholder_service, create_investor):
        share_class = shareholder_service.create_share_class("OPEN", "Unlimited")
        shareholder_service.allot(create_investor().id, share_class.id, 10**9, Decimal("0"), date(2024, 1, 1))
        assert share_class.issued_shares == 10**9

    def test_kyc_required(self, shareholder_service, ordinary, create_investor):
        with pytest.raises(KycNotApprovedError):
            shareholder_service.allot(
                create_investor(approved=False).id, ordinary.id, 1, Decimal("1"), date(2024, 1, 1),
            )

    def test_zero_shares_rejected(self, shareholder_service, ordinary, create_investor):
        with pytest.raises(InvalidAmountError):
            shareholder_service.allot(create_investor().id, ordinary.id, 0, Decimal("1"), date(2024, 1, 1))

    def test_duplicate_certificate(self, shareholder_service, ordinary, create_investor):
        investor = create_investor()
        shareholder_service.allot(
            investor.id, ordinary.id, 1, Decimal("1"), date(2024, 1, 1), certificate_number="C-9",
        )
        with pytest.raises(DuplicateCertificateNumberError):
            shareholder_service.allot(
                investor.id, ordinary.id, 1, Decimal("1"), date(2024, 1, 2), certificate_number="C-9",
            )

    def test_unknown_share_class(self, shareholder_service, create_investor):
        with pytest.raises(ShareClassNotFoundError):
            shareholder_service.allot(create_investor().id, uuid4(), 1, Decimal("1"), date(2024, 1, 1))


class TestTransferAndCancel:

    def test_transfer_moves_whole_allocation(
        self, shareholder_service, ordinary, create_investor,
    ):
        seller, buyer = create_investor("Seller"), create_investor("Buyer")
        source = shareholder_service.allot(
            seller.id, ordinary.id, 100, Decimal("1"), date(2024, 1, 1), certificate_number="C-1",
        )

        target = shareholder_service.transfer(
            source.id, buyer.id, date(2024, 5, 1),
            price_per_share=Decimal("1.75"), certificate_number="C-2",
        )

        assert source.status == "transferred"
        assert target.status == "active"
        assert target.investor_id == buyer.id
        assert target.number_of_shares == 100
        assert target.total_consideration == Decimal("175.00")
        assert ordinary.issued_shares == 100

        (record,) = shareholder_service.transfers(ordinary.id)
        assert record.from_allocation_id == source.id
        assert record.to_allocation_id == target.id
        assert record.price_per_share == Decimal("1.75")
        assert record.old_certificate_number == "C-1"

    def test_transfer_posts_nothing(self, session, shareholder_service, ordinary, create_investor):
        source = shareholder_service.allot(
            create_investor().id, ordinary.id, 10, Decimal("1"), date(2024, 1, 1),
        )
        target = shareholder_service.transfer(source.id, create_investor().id, date(2024, 2, 1))

        assert target.journal_entry_id is None
        assert JournalSelector(session).list_entries() == []

    def test_transferred_allocation_cannot_move_again(
        self, shareholder_service, ordinary, create_investor,
    ):
        source = shareholder_service.allot(
            create_investor().id, ordinary.id, 10, Decimal("1"), date(2024, 1, 1),
        )
        shareholder_service.transfer(source.id, create_investor().id, date(2024, 2, 1))

        with pytest.raises(InvalidTransitionError):
            shareholder_service.transfer(source.id, create_investor().id, date(2024, 3, 1))

    def test_cancel_releases_shares(self, shareholder_service, ordinary, create_investor):
        allocation = shareholder_service.allot(
            create_investor().id, ordinary.id, 400, Decimal("1"), date(2024, 1, 1),
        )

        shareholder_service.cancel(allocation.id)

        assert allocation.status == "cancelled"
        assert ordinary.issued_shares == 0
        with pytest.raises(InvalidTransitionError):
            shareholder_service.cancel(allocation.id)


class TestRegister:

    def test_groups_active_holdings_by_investor(
        self, shareholder_service, ordinary, create_investor,
    ):
        alice, bob = create_investor("Alice"), create_investor("Bob")
        shareholder_service.allot(alice.id, ordinary.id, 100, Decimal("1"), date(2024, 1, 1))
        shareholder_service.allot(bob.id, ordinary.id, 50, Decimal("2"), date(2024, 1, 2))
        shareholder_service.allot(alice.id, ordinary.id, 25, Decimal("1"), date(2024, 1, 3))
        cancelled = shareholder_service.allot(bob.id, ordinary.id, 5, Decimal("1"), date(2024, 1, 4))
        shareholder_service.cancel(cancelled.id)

        register = shareholder_service.register(ordinary.id)

        assert [(r.investor_name, r.total_shares) for r in register] == [
            ("Alice", 125),
            ("Bob", 50),
        ]
        assert register[0].total_consideration == Decimal("125")
        assert len(register[0].holdings) == 2
        assert register[1].total_consideration == Decimal("100")


class TestSuspension:

    def test_suspended_holding_leaves_register(
        self, shareholder_service, ordinary, create_investor,
    ):
        alice, bob = create_investor("Alice"), create_investor("Bob")
        held = shareholder_service.allot(alice.id, ordinary.id, 100, Decimal("1"), date(2024, 1, 1))
        shareholder_service.allot(bob.id, ordinary.id, 50, Decimal("1"), date(2024, 1, 2))

        suspended = shareholder_service.suspend(held.id)

        assert suspended.status == "suspended"
        assert ordinary.issued_shares == 150
        assert [r.investor_name for r in shareholder_service.register(ordinary.id)] == ["Bob"]

    def test_reinstate_restores_holding(self, shareholder_service, ordinary, create_investor):
        alice = create_investor("Alice")
        held = shareholder_service.allot(alice.id, ordinary.id, 100, Decimal("1"), date(2024, 1, 1))
        shareholder_service.suspend(held.id)

        reinstated = shareholder_service.reinstate(held.id)

        assert reinstated.status == "active"
        assert [r.total_shares for r in shareholder_service.register(ordinary.id)] == [100]

    def test_suspended_holding_cannot_transfer(
        self, shareholder_service, ordinary, create_investor,
    ):
        held = shareholder_service.allot(
            create_investor().id, ordinary.id, 10, Decimal("1"), date(2024, 1, 1),
        )
        shareholder_service.suspend(held.id)

        with pytest.raises(InvalidTransitionError):
            shareholder_service.transfer(held.id, create_investor().id, date(2024, 2, 1))
        with pytest.raises(InvalidTransitionError):
            shareholder_service.suspend(held.id)

    def test_only_suspended_holding_can_be_reinstated(
        self, shareholder_service, ordinary, create_investor,
    ):
        held = shareholder_service.allot(
            create_investor().id, ordinary.id, 10, Decimal("1"), date(2024, 1, 1),
        )
        with pytest.raises(InvalidTransitionError):
            shareholder_service.reinstate(held.id)

    def test_unknown_allocation(self, shareholder_service):
        with pytest.raises(AllocationNotFoundError):
            shareholder_service.suspend(uuid4())
