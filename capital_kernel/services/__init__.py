"""Kernel services: posting, numbering and ledger sinks."""

from capital_kernel.services.entry_numbering import (
    EntryNumberGenerator,
    format_entry_number,
)
from capital_kernel.services.ledger_posting_service import (
    LedgerPostingService,
    PostingLine,
    balanced_pair,
)
from capital_kernel.services.ledger_sink import (
    AccountPairSink,
    LedgerSink,
    NullLedgerSink,
    ledger_sink_for,
)

__all__ = [
    "AccountPairSink",
    "EntryNumberGenerator",
    "LedgerPostingService",
    "LedgerSink",
    "NullLedgerSink",
    "PostingLine",
    "balanced_pair",
    "format_entry_number",
    "ledger_sink_for",
]
