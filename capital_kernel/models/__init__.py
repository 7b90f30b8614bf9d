"""ORM models for the capital kernel."""

from capital_kernel.models.account import Account, AccountType, NormalBalance
from capital_kernel.models.journal import (
    JournalEntry,
    JournalEntryStatus,
    JournalLine,
    LineSide,
)
from capital_kernel.models.sequence import SequenceCounter

__all__ = [
    "Account",
    "AccountType",
    "NormalBalance",
    "JournalEntry",
    "JournalEntryStatus",
    "JournalLine",
    "LineSide",
    "SequenceCounter",
]
