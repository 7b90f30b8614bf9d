"""
Ledger sinks -- opportunistic posting as an injectable capability.

Engine operations post into the ledger only when the relevant accounts are
configured (on the project, or passed by the caller).  Instead of checking
for account ids at every call site, the operation asks
``ledger_sink_for`` for a sink and always calls ``post``.  With both
accounts present it gets an ``AccountPairSink``; otherwise a
``NullLedgerSink`` that does nothing and returns ``None``.

The return value is the posted entry id (or None), which call sites assign
straight to the domain row's ``journal_entry_id``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from uuid import UUID

from capital_kernel.logging_config import get_logger
from capital_kernel.services.ledger_posting_service import (
    LedgerPostingService,
    balanced_pair,
)

logger = get_logger("services.ledger_sink")


class LedgerSink(ABC):
    """Destination for one balanced two-line posting."""

    @abstractmethod
    def post(
        self,
        amount: Decimal,
        entry_date: date,
        description: str,
        source_type: str,
        debit_memo: str | None = None,
        credit_memo: str | None = None,
    ) -> UUID | None:
        """Post ``amount`` and return the journal entry id, if any."""


class NullLedgerSink(LedgerSink):
    """Accounts not configured: posting is skipped, which is not an error."""

    def post(
        self,
        amount: Decimal,
        entry_date: date,
        description: str,
        source_type: str,
        debit_memo: str | None = None,
        credit_memo: str | None = None,
    ) -> UUID | None:
        logger.debug(
            "ledger_posting_skipped",
            extra={"source_type": source_type, "amount": str(amount)},
        )
        return None


class AccountPairSink(LedgerSink):
    """Debits one account and credits another through the posting service."""

    def __init__(
        self,
        poster: LedgerPostingService,
        debit_account_id: UUID,
        credit_account_id: UUID,
    ):
        self._poster = poster
        self.debit_account_id = debit_account_id
        self.credit_account_id = credit_account_id

    def post(
        self,
        amount: Decimal,
        entry_date: date,
        description: str,
        source_type: str,
        debit_memo: str | None = None,
        credit_memo: str | None = None,
    ) -> UUID | None:
        entry = self._poster.post_entry(
            entry_date=entry_date,
            description=description,
            source_type=source_type,
            lines=balanced_pair(
                self.debit_account_id,
                self.credit_account_id,
                amount,
                debit_memo,
                credit_memo,
            ),
        )
        return entry.id


def ledger_sink_for(
    poster: LedgerPostingService,
    debit_account_id: UUID | None,
    credit_account_id: UUID | None,
) -> LedgerSink:
    """Pick the sink for an optional debit/credit account pair."""
    if debit_account_id is None or credit_account_id is None:
        return NullLedgerSink()
    return AccountPairSink(poster, debit_account_id, credit_account_id)
