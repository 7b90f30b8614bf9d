"""
Membership Fee Domain Models.

Fee schedules attach a recurring fee to a share class; each billing run
turns a schedule into one invoice per active holding for a labelled
period.  ORM rows in ``orm.py`` convert to these with ``to_dto()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


class FeeType(str, Enum):
    FLAT_PER_MEMBER = "flat_per_member"
    PER_SHARE = "per_share"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    BIANNUAL = "biannual"
    ANNUAL = "annual"


class FeeInvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    WAIVED = "waived"


# Invoices still owed by the member
OUTSTANDING_INVOICE_STATUSES = (FeeInvoiceStatus.PENDING, FeeInvoiceStatus.OVERDUE)


@dataclass(frozen=True)
class FeeSchedule:
    id: UUID
    share_class_id: UUID
    name: str
    fee_type: str
    billing_cycle: str
    amount: Decimal
    is_active: bool
    cash_account_id: UUID | None = None
    revenue_account_id: UUID | None = None
    description: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class FeeInvoice:
    id: UUID
    schedule_id: UUID
    investor_id: UUID
    invoice_number: str
    period_label: str
    period_start: date
    period_end: date
    due_date: date
    share_count: int
    amount: Decimal
    status: str
    paid_date: date | None = None
    journal_entry_id: UUID | None = None
    waived_reason: str | None = None
    notes: str | None = None


@dataclass(frozen=True)
class InvoiceRun:
    """Outcome of one billing run: invoices written and holdings skipped."""

    schedule_id: UUID
    period_label: str
    generated: int
    skipped: int


@dataclass(frozen=True)
class DelinquentInvoice:
    invoice_id: UUID
    invoice_number: str
    investor_id: UUID
    investor_name: str
    schedule_name: str
    amount: Decimal
    due_date: date
    status: str
    days_overdue: int
