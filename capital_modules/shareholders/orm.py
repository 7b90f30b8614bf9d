"""
Shareholder ORM Models (``capital_modules.shareholders.orm``).

Responsibility
--------------
SQLAlchemy persistence for share classes, allocations, share transfers,
capital calls and shareholder payments.  Maps to the frozen dataclasses in
``models.py``.

Architecture position
---------------------
**Modules layer** -- persistence.  References ``investors`` and
``journal_entries`` by foreign key only.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from capital_kernel.db.base import TrackedBase
from capital_modules.shareholders.models import (
    AllocationStatus,
    CapitalCall,
    CapitalCallStatus,
    PaymentStatus,
    ShareClass,
    ShareholderAllocation,
    ShareholderPayment,
    ShareTransfer,
)


class ShareClassModel(TrackedBase):
    """
    ORM model for ``ShareClass``.

    ``issued_shares`` is a running total maintained by allot and cancel.

    Table: ``share_classes``
    """

    __tablename__ = "share_classes"

    code: Mapped[str] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(200))
    share_class_type: Mapped[str] = mapped_column(String(20))
    par_value: Mapped[Decimal | None]
    authorized_shares: Mapped[int | None] = mapped_column(Integer, nullable=True)
    issued_shares: Mapped[int] = mapped_column(Integer, default=0)
    voting_rights: Mapped[bool] = mapped_column(Boolean, default=True)
    dividend_priority: Mapped[int] = mapped_column(Integer, default=0)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        UniqueConstraint("code", name="uq_share_classes_code"),
    )

    def to_dto(self) -> ShareClass:
        return ShareClass(
            id=self.id,
            code=self.code,
            name=self.name,
            share_class_type=self.share_class_type,
            issued_shares=self.issued_shares,
            authorized_shares=self.authorized_shares,
            par_value=self.par_value,
            voting_rights=self.voting_rights,
            dividend_priority=self.dividend_priority,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<ShareClassModel(code={self.code!r}, issued={self.issued_shares!r})>"


class ShareholderAllocationModel(TrackedBase):
    """
    ORM model for ``ShareholderAllocation``.

    A row is never re-pointed at another investor: a transfer closes this
    row and creates a new one for the recipient.

    Table: ``shareholder_allocations``
    """

    __tablename__ = "shareholder_allocations"

    investor_id: Mapped[UUID] = mapped_column(ForeignKey("investors.id"))
    share_class_id: Mapped[UUID] = mapped_column(ForeignKey("share_classes.id"))
    number_of_shares: Mapped[int] = mapped_column(Integer)
    issue_price_per_share: Mapped[Decimal]
    total_consideration: Mapped[Decimal]
    status: Mapped[str] = mapped_column(String(20), default=AllocationStatus.ACTIVE.value)
    allocation_date: Mapped[date]
    certificate_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    journal_entry_id: Mapped[UUID | None] = mapped_column(ForeignKey("journal_entries.id"))
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        UniqueConstraint("certificate_number", name="uq_shareholder_allocations_certificate"),
        Index("idx_allocations_class_status", "share_class_id", "status"),
        Index("idx_allocations_investor", "investor_id"),
    )

    def to_dto(self) -> ShareholderAllocation:
        return ShareholderAllocation(
            id=self.id,
            investor_id=self.investor_id,
            share_class_id=self.share_class_id,
            number_of_shares=self.number_of_shares,
            issue_price_per_share=self.issue_price_per_share,
            total_consideration=self.total_consideration,
            status=self.status,
            allocation_date=self.allocation_date,
            certificate_number=self.certificate_number,
            journal_entry_id=self.journal_entry_id,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<ShareholderAllocationModel(id={self.id!r}, "
            f"shares={self.number_of_shares!r}, status={self.status!r})>"
        )


class ShareTransferModel(TrackedBase):
    """
    Audit row for one share transfer.  Insert-only.

    Table: ``share_transfers``
    """

    __tablename__ = "share_transfers"

    share_class_id: Mapped[UUID] = mapped_column(ForeignKey("share_classes.id"))
    from_investor_id: Mapped[UUID] = mapped_column(ForeignKey("investors.id"))
    to_investor_id: Mapped[UUID] = mapped_column(ForeignKey("investors.id"))
    from_allocation_id: Mapped[UUID] = mapped_column(ForeignKey("shareholder_allocations.id"))
    to_allocation_id: Mapped[UUID] = mapped_column(ForeignKey("shareholder_allocations.id"))
    number_of_shares: Mapped[int] = mapped_column(Integer)
    price_per_share: Mapped[Decimal | None]
    transfer_date: Mapped[date]
    old_certificate_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    new_certificate_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    def to_dto(self) -> ShareTransfer:
        return ShareTransfer(
            id=self.id,
            share_class_id=self.share_class_id,
            from_investor_id=self.from_investor_id,
            to_investor_id=self.to_investor_id,
            from_allocation_id=self.from_allocation_id,
            to_allocation_id=self.to_allocation_id,
            number_of_shares=self.number_of_shares,
            transfer_date=self.transfer_date,
            price_per_share=self.price_per_share,
            old_certificate_number=self.old_certificate_number,
            new_certificate_number=self.new_certificate_number,
            notes=self.notes,
        )


class CapitalCallModel(TrackedBase):
    """
    ORM model for ``CapitalCall``.

    ``total_amount_called`` is NULL until the call is issued.

    Table: ``capital_calls``
    """

    __tablename__ = "capital_calls"

    share_class_id: Mapped[UUID] = mapped_column(ForeignKey("share_classes.id"))
    description: Mapped[str] = mapped_column(String(500))
    amount_per_share: Mapped[Decimal]
    call_date: Mapped[date]
    due_date: Mapped[date | None]
    status: Mapped[str] = mapped_column(String(20), default=CapitalCallStatus.DRAFT.value)
    total_amount_called: Mapped[Decimal | None]
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        Index("idx_capital_calls_class_status", "share_class_id", "status"),
    )

    def to_dto(self) -> CapitalCall:
        return CapitalCall(
            id=self.id,
            share_class_id=self.share_class_id,
            description=self.description,
            amount_per_share=self.amount_per_share,
            call_date=self.call_date,
            status=self.status,
            due_date=self.due_date,
            total_amount_called=self.total_amount_called,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return f"<CapitalCallModel(id={self.id!r}, status={self.status!r})>"


class ShareholderPaymentModel(TrackedBase):
    """
    ORM model for ``ShareholderPayment``.

    ``journal_entry_id`` is set only when mark_paid posted an entry.

    Table: ``shareholder_payments``
    """

    __tablename__ = "shareholder_payments"

    investor_id: Mapped[UUID] = mapped_column(ForeignKey("investors.id"))
    capital_call_id: Mapped[UUID | None] = mapped_column(ForeignKey("capital_calls.id"))
    payment_type: Mapped[str] = mapped_column(String(30))
    amount: Mapped[Decimal]
    status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING.value)
    due_date: Mapped[date | None]
    paid_date: Mapped[date | None]
    reference: Mapped[str | None] = mapped_column(String(200), nullable=True)
    journal_entry_id: Mapped[UUID | None] = mapped_column(ForeignKey("journal_entries.id"))
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)

    __table_args__ = (
        Index("idx_payments_call", "capital_call_id"),
        Index("idx_payments_investor_status", "investor_id", "status"),
    )

    def to_dto(self) -> ShareholderPayment:
        return ShareholderPayment(
            id=self.id,
            investor_id=self.investor_id,
            payment_type=self.payment_type,
            amount=self.amount,
            status=self.status,
            capital_call_id=self.capital_call_id,
            due_date=self.due_date,
            paid_date=self.paid_date,
            reference=self.reference,
            journal_entry_id=self.journal_entry_id,
            notes=self.notes,
        )

    def __repr__(self) -> str:
        return (
            f"<ShareholderPaymentModel(id={self.id!r}, amount={self.amount!r}, "
            f"status={self.status!r})>"
        )
