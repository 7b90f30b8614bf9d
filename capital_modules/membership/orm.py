"""
Membership Fee ORM Models (``capital_modules.membership.orm``).

Responsibility
--------------
SQLAlchemy persistence for fee schedules and fee invoices.  Maps to the
frozen dataclasses in ``models.py``.

Architecture position
---------------------
**Modules layer** -- persistence.  References ``share_classes``,
``investors``, ``accounts`` and ``journal_entries`` by foreign key only.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from capital_kernel.db.base import TrackedBase
from capital_modules.membership.models import (
    FeeInvoice,
    FeeInvoiceStatus,
    FeeSchedule,
)


class MembershipFeeScheduleModel(TrackedBase):
    """
    ORM model for ``FeeSchedule``.

    Invoices are only generated while ``is_active``.  Payments post to the
    ledger only when both account ids are set.

    Table: ``membership_fee_schedules``
    """

    __tablename__ = "membership_fee_schedules"

    share_class_id: Mapped[UUID] = mapped_column(ForeignKey("share_classes.id"))
    name: Mapped[str] = mapped_column(String(200))
    fee_type: Mapped[str] = mapped_column(String(20))
    billing_cycle: Mapped[str] = mapped_column(String(20))
    amount: Mapped[Decimal]
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    cash_account_id: Mapped[UUID | None] = mapped_column(ForeignKey("accounts.id"))
    revenue_account_id: Mapped[UUID | None] = mapped_column(ForeignKey("accounts.id"))
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        Index("idx_fee_schedules_class", "share_class_id"),
    )

    def to_dto(self) -> FeeSchedule:
        return FeeSchedule(
            id=self.id,
            share_class_id=self.share_class_id,
            name=self.name,
            fee_type=self.fee_type,
            billing_cycle=self.billing_cycle,
            amount=self.amount,
            is_active=self.is_active,
            cash_account_id=self.cash_account_id,
            revenue_account_id=self.revenue_account_id,
            description=self.description,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<MembershipFeeScheduleModel(id={self.id!r}, name={self.name!r}, "
            f"active={self.is_active!r})>"
        )


class MembershipFeeInvoiceModel(TrackedBase):
    """
    ORM model for ``FeeInvoice``.

    One invoice per schedule, investor and period label; the unique
    constraint makes a repeated billing run a no-op for that member.

    Table: ``membership_fee_invoices``
    """

    __tablename__ = "membership_fee_invoices"

    schedule_id: Mapped[UUID] = mapped_column(ForeignKey("membership_fee_schedules.id"))
    investor_id: Mapped[UUID] = mapped_column(ForeignKey("investors.id"))
    invoice_number: Mapped[str] = mapped_column(String(50))
    period_label: Mapped[str] = mapped_column(String(100))
    period_start: Mapped[date]
    period_end: Mapped[date]
    due_date: Mapped[date]
    share_count: Mapped[int] = mapped_column(Integer)
    amount: Mapped[Decimal]
    status: Mapped[str] = mapped_column(String(20), default=FeeInvoiceStatus.PENDING.value)
    paid_date: Mapped[date | None]
    journal_entry_id: Mapped[UUID | None] = mapped_column(ForeignKey("journal_entries.id"))
    waived_reason: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        UniqueConstraint("invoice_number", name="uq_fee_invoices_number"),
        UniqueConstraint(
            "schedule_id", "investor_id", "period_label", name="uq_fee_invoices_period",
        ),
        Index("idx_fee_invoices_status_due", "status", "due_date"),
        Index("idx_fee_invoices_investor", "investor_id"),
    )

    def to_dto(self) -> FeeInvoice:
        return FeeInvoice(
            id=self.id,
            schedule_id=self.schedule_id,
            investor_id=self.investor_id,
            invoice_number=self.invoice_number,
            period_label=self.period_label,
            period_start=self.period_start,
            period_end=self.period_end,
            due_date=self.due_date,
            share_count=self.share_count,
            amount=self.amount,
            status=self.status,
            paid_date=self.paid_date,
            journal_entry_id=self.journal_entry_id,
            waived_reason=self.waived_reason,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<MembershipFeeInvoiceModel(number={self.invoice_number!r}, "
            f"amount={self.amount!r}, status={self.status!r})>"
        )
