"""Read-only query selectors over the ledger."""

from capital_kernel.selectors.journal_selector import JournalSelector
from capital_kernel.selectors.ledger_selector import AccountActivityRow, LedgerSelector

__all__ = ["AccountActivityRow", "JournalSelector", "LedgerSelector"]
