"""
LedgerPostingService -- double-entry posting with running balances.

Responsibility:
    Inserts one JournalEntry plus its lines and moves the running
    ``current_balance`` of every touched account.  This is the only writer
    of journal rows and of account balances.

Architecture position:
    Kernel > Services.  Leaf component: knows nothing about projects,
    investors or shares.  Engine operations reach it through a LedgerSink.

Invariants enforced:
    - Entry totals: total_debit / total_credit are the per-side line sums.
    - Balance direction: a debit line raises a debit-normal account and
      lowers a credit-normal one; a credit line does the opposite.
    - Row locks: each account row is re-read ``FOR UPDATE`` before its
      balance moves, so concurrent postings to one account serialize.
    - Caller-owned transaction: flushes, never commits, never retries.

    Balance of the line set is NOT re-verified here.  Callers build lines
    with ``balanced_pair`` so every entry is balanced by construction.

Failure modes:
    - EmptyPostingError: no lines.
    - InvalidAmountError: a line amount <= 0.
    - AccountNotFoundError: a line references an unknown account.
    Any failure propagates and aborts the caller's whole operation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from capital_kernel.domain.actor import ActorProvider, ContextActorProvider
from capital_kernel.exceptions import (
    AccountNotFoundError,
    EmptyPostingError,
    InvalidAmountError,
)
from capital_kernel.logging_config import LogContext, get_logger
from capital_kernel.models.account import Account, NormalBalance
from capital_kernel.models.journal import (
    JournalEntry,
    JournalEntryStatus,
    JournalLine,
    LineSide,
)
from capital_kernel.services.entry_numbering import EntryNumberGenerator

logger = get_logger("services.ledger_posting")


@dataclass(frozen=True)
class PostingLine:
    """One requested ledger movement."""

    account_id: UUID
    side: LineSide
    amount: Decimal
    memo: str | None = None


def balanced_pair(
    debit_account_id: UUID,
    credit_account_id: UUID,
    amount: Decimal,
    debit_memo: str | None = None,
    credit_memo: str | None = None,
) -> tuple[PostingLine, PostingLine]:
    """Build a matched debit/credit pair for the same amount."""
    return (
        PostingLine(debit_account_id, LineSide.DEBIT, amount, debit_memo),
        PostingLine(credit_account_id, LineSide.CREDIT, amount, credit_memo),
    )


def balance_delta(normal_balance: str, side: str, amount: Decimal) -> Decimal:
    """Signed change to a running balance for one line."""
    increases = (normal_balance == NormalBalance.DEBIT) == (side == LineSide.DEBIT)
    return amount if increases else -amount


class LedgerPostingService:
    """
    Posts balanced journal entries inside the caller's transaction.

    Contract:
        ``post_entry`` either inserts the entry, its lines and all balance
        movements, or raises with nothing flushed on its behalf beyond what
        the caller's rollback will discard.

    Non-goals:
        - No reversal or amendment path: entries are immutable.
        - No period locks.
    """

    def __init__(
        self,
        session: Session,
        actor_provider: ActorProvider | None = None,
        numbering: EntryNumberGenerator | None = None,
    ):
        self._session = session
        self._actors = actor_provider or ContextActorProvider()
        self._numbering = numbering or EntryNumberGenerator(session)

    def generate_entry_number(self, prefix: str) -> str:
        return self._numbering.generate(prefix)

    def post_entry(
        self,
        entry_date: date,
        description: str,
        source_type: str,
        lines: Sequence[PostingLine],
        created_by: str | None = None,
    ) -> JournalEntry:
        if not lines:
            raise EmptyPostingError(source_type)
        for line in lines:
            if line.amount <= 0:
                raise InvalidAmountError("line amount", line.amount)

        accounts = self._lock_accounts({line.account_id for line in lines})

        total_debit = sum(
            (line.amount for line in lines if line.side == LineSide.DEBIT), Decimal("0")
        )
        total_credit = sum(
            (line.amount for line in lines if line.side == LineSide.CREDIT), Decimal("0")
        )

        actor = created_by or self._actors.current_actor()
        entry = JournalEntry(
            entry_number=self._numbering.generate(source_type),
            entry_date=entry_date,
            description=description,
            source_type=source_type,
            status=JournalEntryStatus.POSTED.value,
            total_debit=total_debit,
            total_credit=total_credit,
            created_by=actor,
        )
        for seq, line in enumerate(lines):
            entry.lines.append(
                JournalLine(
                    account_id=line.account_id,
                    side=LineSide(line.side).value,
                    amount=line.amount,
                    line_memo=line.memo,
                    line_seq=seq,
                )
            )
        self._session.add(entry)

        for line in lines:
            account = accounts[line.account_id]
            account.current_balance += balance_delta(
                account.normal_balance, line.side, line.amount
            )

        self._session.flush()

        with LogContext.bind(entry_number=entry.entry_number):
            logger.info(
                "journal_entry_posted",
                extra={
                    "entry_id": str(entry.id),
                    "source_type": source_type,
                    "total_debit": str(total_debit),
                    "total_credit": str(total_credit),
                    "line_count": len(lines),
                },
            )
        return entry

    def _lock_accounts(self, account_ids: set[UUID]) -> dict[UUID, Account]:
        # Stable lock order avoids deadlocks between concurrent postings.
        rows = self._session.execute(
            select(Account)
            .where(Account.id.in_(sorted(account_ids, key=str)))
            .order_by(Account.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        found = {row.id: row for row in rows}
        for account_id in account_ids:
            if account_id not in found:
                raise AccountNotFoundError(account_id)
        return found
