"""
Module: capital_kernel.models.journal
Responsibility: ORM persistence for journal entries and their lines -- the
    double-entry record of every posting the engine makes.
Architecture position: Kernel > Models.  May import from db/base.py and
    sibling models.

Invariants enforced:
    - ``entry_number`` is unique (uq_journal_entry_number).
    - total_debit == total_credit == the per-side sum of the entry's lines.
      Guaranteed by construction: lines come from LedgerPostingService,
      which only receives pre-matched debit/credit pairs.
    - Entries are immutable once posted.  There is no amendment path.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from capital_kernel.db.base import Base, TrackedBase

if TYPE_CHECKING:
    from capital_kernel.models.account import Account


class JournalEntryStatus(str, Enum):
    POSTED = "posted"


class LineSide(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class JournalEntry(TrackedBase):
    """
    A balanced, immutable journal entry.

    Contract:
        Created only by LedgerPostingService in the caller's transaction.
        ``source_type`` tags the originating operation (INV, EXIT, DIST,
        SHARE, PAY).

    Guarantees:
        - ``entry_number`` unique across the ledger.
        - ``lines`` loaded eagerly (selectin) in ``line_seq`` order.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("entry_number", name="uq_journal_entry_number"),
        Index("idx_journal_entry_date", "entry_date"),
        Index("idx_journal_source_type", "source_type"),
    )

    entry_number: Mapped[str] = mapped_column(String(50), nullable=False)
    entry_date: Mapped[date] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    source_type: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[JournalEntryStatus] = mapped_column(
        String(20),
        default=JournalEntryStatus.POSTED.value,
        nullable=False,
    )

    total_debit: Mapped[Decimal] = mapped_column(nullable=False)
    total_credit: Mapped[Decimal] = mapped_column(nullable=False)

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JournalLine.line_seq",
    )

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} [{self.source_type}] {self.total_debit}>"


class JournalLine(Base):
    """
    One debit or credit movement against a single account.

    Contract:
        ``amount`` is always positive; direction is carried by ``side``.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        ForeignKey("journal_entries.id"),
        nullable=False,
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
    )

    side: Mapped[LineSide] = mapped_column(String(10), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    line_memo: Mapped[str | None] = mapped_column(String(500), nullable=True)
    line_seq: Mapped[int] = mapped_column(Integer, nullable=False)

    entry: Mapped["JournalEntry"] = relationship(back_populates="lines")
    account: Mapped["Account"] = relationship()

    @property
    def is_debit(self) -> bool:
        return self.side == LineSide.DEBIT

    def __repr__(self) -> str:
        return f"<JournalLine {self.side} {self.amount}>"
