"""
Module: capital_kernel.models.account
Responsibility: ORM persistence for the Chart of Accounts -- the target of
    every journal line, carrying a running ``current_balance``.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - ``code`` is unique (uq_account_code).
    - ``current_balance`` equals the signed sum of every posted line against
      the account since creation.  It is only ever changed by
      LedgerPostingService, under a row lock.

Failure modes:
    - AccountNotFoundError when a posting references a non-existent account.
"""

from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from capital_kernel.db.base import TrackedBase


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class NormalBalance(str, Enum):
    """Normal balance side for an account."""

    DEBIT = "debit"
    CREDIT = "credit"


DEFAULT_NORMAL_BALANCE: dict[AccountType, NormalBalance] = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.REVENUE: NormalBalance.CREDIT,
}


class Account(TrackedBase):
    """
    Chart of Accounts entry with a running balance.

    Contract:
        Account.code is globally unique.  ``current_balance`` is expressed
        on the account's normal side: positive when the account carries its
        expected balance.

    Non-goals:
        - Does NOT enforce posting rules; LedgerPostingService does.
        - Does NOT carry a currency (single-currency ledger).
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_type", "account_type"),
        Index("idx_account_parent", "parent_id"),
    )

    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)
    normal_balance: Mapped[NormalBalance] = mapped_column(String(10), nullable=False)

    current_balance: Mapped[Decimal] = mapped_column(default=Decimal("0"), nullable=False)

    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=True,
    )

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.DEBIT

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name} ({self.account_type})>"
