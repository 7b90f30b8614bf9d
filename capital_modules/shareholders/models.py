"""
Shareholder Domain Models.

Frozen value objects for share classes, allocations (allotments), share
transfers, capital calls and shareholder payments, plus the register view
that groups active holdings by investor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class ShareClassType(str, Enum):
    ORDINARY = "ordinary"
    PREFERENCE = "preference"
    REDEEMABLE = "redeemable"
    CONVERTIBLE = "convertible"


class AllocationStatus(str, Enum):
    ACTIVE = "active"
    TRANSFERRED = "transferred"
    CANCELLED = "cancelled"
    SUSPENDED = "suspended"


class CapitalCallStatus(str, Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    PARTIALLY_PAID = "partially_paid"
    FULLY_PAID = "fully_paid"
    CANCELLED = "cancelled"


class PaymentType(str, Enum):
    DIVIDEND = "dividend"
    CAPITAL_CONTRIBUTION = "capital_contribution"
    CAPITAL_CALL = "capital_call"
    LOAN_REPAYMENT = "loan_repayment"
    INTEREST = "interest"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"
    WAIVED = "waived"


# Money flowing from the shareholder to the company
INCOMING_PAYMENT_TYPES = frozenset({PaymentType.CAPITAL_CALL, PaymentType.CAPITAL_CONTRIBUTION})

PAYMENT_DESCRIPTIONS = {
    PaymentType.CAPITAL_CALL: "Capital call payment",
    PaymentType.CAPITAL_CONTRIBUTION: "Capital contribution",
    PaymentType.DIVIDEND: "Dividend payment",
    PaymentType.INTEREST: "Interest payment",
    PaymentType.LOAN_REPAYMENT: "Loan repayment",
}


@dataclass(frozen=True)
class ShareClass:
    id: UUID
    code: str
    name: str
    share_class_type: str
    issued_shares: int
    authorized_shares: int | None = None
    par_value: Decimal | None = None
    voting_rights: bool = True
    dividend_priority: int = 0
    notes: str | None = None

    @property
    def available_shares(self) -> int | None:
        if self.authorized_shares is None:
            return None
        return self.authorized_shares - self.issued_shares


@dataclass(frozen=True)
class ShareholderAllocation:
    id: UUID
    investor_id: UUID
    share_class_id: UUID
    number_of_shares: int
    issue_price_per_share: Decimal
    total_consideration: Decimal
    status: str
    allocation_date: date
    certificate_number: str | None = None
    journal_entry_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class ShareTransfer:
    id: UUID
    share_class_id: UUID
    from_investor_id: UUID
    to_investor_id: UUID
    from_allocation_id: UUID
    to_allocation_id: UUID
    number_of_shares: int
    transfer_date: date
    price_per_share: Decimal | None = None
    old_certificate_number: str | None = None
    new_certificate_number: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class CapitalCall:
    id: UUID
    share_class_id: UUID
    description: str
    amount_per_share: Decimal
    call_date: date
    status: str
    due_date: date | None = None
    total_amount_called: Decimal | None = None
    notes: str | None = None


@dataclass(frozen=True)
class ShareholderPayment:
    id: UUID
    investor_id: UUID
    payment_type: str
    amount: Decimal
    status: str
    capital_call_id: UUID | None = None
    due_date: date | None = None
    paid_date: date | None = None
    reference: str | None = None
    journal_entry_id: UUID | None = None
    notes: str | None = None


@dataclass(frozen=True)
class RegisterEntry:
    """One investor's active holdings in the share register."""

    investor_id: UUID
    investor_name: str
    email: str
    total_shares: int
    total_consideration: Decimal
    holdings: tuple[ShareholderAllocation, ...] = field(default_factory=tuple)
