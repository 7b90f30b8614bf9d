"""
Module: capital_kernel.selectors.ledger_selector
Responsibility: Per-account debit/credit aggregation over posted journal
    lines within a date window.  Feeds the trial balance, profit-and-loss
    and balance sheet builders.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Only entries with status ``posted`` are aggregated.
    - Every active account appears exactly once, with zero totals when it
      had no activity in the window.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, select

from capital_kernel.db.types import MONEY_DECIMAL_PLACES, round_money
from capital_kernel.models.account import Account, AccountType
from capital_kernel.models.journal import (
    JournalEntry,
    JournalEntryStatus,
    JournalLine,
    LineSide,
)
from capital_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class AccountActivityRow:
    """Debit and credit totals for one account over a window."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: str
    normal_balance: str
    parent_id: UUID | None
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        """Net balance (debits - credits)."""
        return self.debit_total - self.credit_total


class LedgerSelector(BaseSelector):
    """Aggregations over posted journal lines."""

    def account_activity(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        account_types: tuple[AccountType, ...] | None = None,
        active_only: bool = True,
    ) -> list[AccountActivityRow]:
        """
        Sum debit and credit line amounts per account for entries dated in
        ``[from_date, to_date]`` (either bound may be open).

        Returns one row per account ordered by code.
        """
        debit_sum = func.sum(
            case(
                (JournalLine.side == LineSide.DEBIT.value, JournalLine.amount),
                else_=Decimal("0"),
            )
        ).label("debit_total")
        credit_sum = func.sum(
            case(
                (JournalLine.side == LineSide.CREDIT.value, JournalLine.amount),
                else_=Decimal("0"),
            )
        ).label("credit_total")

        activity = (
            select(JournalLine.account_id, debit_sum, credit_sum)
            .join(JournalEntry, JournalLine.journal_entry_id == JournalEntry.id)
            .where(JournalEntry.status == JournalEntryStatus.POSTED.value)
            .group_by(JournalLine.account_id)
        )
        if from_date is not None:
            activity = activity.where(JournalEntry.entry_date >= from_date)
        if to_date is not None:
            activity = activity.where(JournalEntry.entry_date <= to_date)
        activity = activity.subquery()

        query = (
            select(
                Account.id,
                Account.code,
                Account.name,
                Account.account_type,
                Account.normal_balance,
                Account.parent_id,
                activity.c.debit_total,
                activity.c.credit_total,
            )
            .outerjoin(activity, activity.c.account_id == Account.id)
            .order_by(Account.code)
        )
        if active_only:
            query = query.where(Account.is_active.is_(True))
        if account_types:
            query = query.where(Account.account_type.in_([t.value for t in account_types]))

        return [
            AccountActivityRow(
                account_id=row.id,
                account_code=row.code,
                account_name=row.name,
                account_type=str(row.account_type),
                normal_balance=str(row.normal_balance),
                parent_id=row.parent_id,
                debit_total=_to_decimal(row.debit_total),
                credit_total=_to_decimal(row.credit_total),
            )
            for row in self.session.execute(query).all()
        ]


def _to_decimal(value) -> Decimal:
    # SQLite hands back float sums from a subquery column
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return round_money(Decimal(str(value)), MONEY_DECIMAL_PLACES)
