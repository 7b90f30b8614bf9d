"""
EntryNumberGenerator -- human-readable unique journal entry numbers.

Responsibility:
    Produces ``{PREFIX}-{NNNNNN}`` identifiers (``INV-000042``) where the
    prefix is the posting's source type and the suffix comes from a
    per-prefix counter row.

Architecture position:
    Kernel > Services.  Called by LedgerPostingService for journal entry
    numbers and by the membership module for invoice numbers.

Invariants enforced:
    - Uniqueness under concurrency: the counter row is read with
      ``SELECT ... FOR UPDATE`` so concurrent postings with the same prefix
      serialize on it.  The unique constraint on
      ``journal_entries.entry_number`` backs this up.
    - Transactional: a rolled-back posting returns its number.

Failure modes:
    - IntegrityError when two transactions create the counter for a brand
      new prefix at the same moment.  Counters for the well-known prefixes
      are created with the schema (``initialize``) so this only affects
      ad-hoc prefixes; the losing transaction aborts like any other error.
"""

from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from capital_kernel.logging_config import get_logger
from capital_kernel.models.sequence import SequenceCounter

logger = get_logger("services.entry_numbering")

DEFAULT_WIDTH = 6

# Source types posted by the investment engine
KNOWN_PREFIXES = ("INV", "EXIT", "DIST", "SHARE", "PAY", "MFI")

# Document numbers that are not journal entries (membership fee invoices)
DOCUMENT_PREFIXES = ("FEE",)


def format_entry_number(prefix: str, value: int, width: int = DEFAULT_WIDTH) -> str:
    """``format_entry_number("inv", 7)`` -> ``"INV-000007"``."""
    if value <= 0:
        raise ValueError(f"Sequence value must be positive, got {value}")
    return f"{_normalize(prefix)}-{value:0{width}d}"


def _normalize(prefix: str) -> str:
    cleaned = prefix.strip().upper()
    if not cleaned:
        raise ValueError("Entry number prefix must be non-empty")
    return cleaned


def _counter_name(prefix: str) -> str:
    return f"entry_number:{_normalize(prefix)}"


class EntryNumberGenerator:
    """
    Allocates entry numbers inside the caller's transaction.

    Contract:
        ``generate(prefix)`` returns a number never returned before for that
        prefix once the caller commits.

    Non-goals:
        - Does NOT commit.  The caller owns the transaction boundary.
    """

    def __init__(self, session: Session, width: int = DEFAULT_WIDTH):
        self._session = session
        self._width = width

    def generate(self, prefix: str) -> str:
        value = self._next_value(_counter_name(prefix))
        number = format_entry_number(prefix, value, self._width)
        logger.debug("entry_number_allocated", extra={"entry_number": number})
        return number

    def current_value(self, prefix: str) -> int | None:
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == _counter_name(prefix))
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def initialize(self, prefixes: Iterable[str] = KNOWN_PREFIXES) -> None:
        """Create zeroed counters for ``prefixes`` that do not exist yet."""
        for prefix in prefixes:
            name = _counter_name(prefix)
            existing = self._session.execute(
                select(SequenceCounter).where(SequenceCounter.name == name)
            ).scalar_one_or_none()
            if existing is None:
                self._session.add(SequenceCounter(name=name, current_value=0))
        self._session.flush()

    def _next_value(self, name: str) -> int:
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

        if counter is None:
            counter = SequenceCounter(name=name, current_value=0)
            self._session.add(counter)

        counter.current_value += 1
        self._session.flush()
        return counter.current_value
