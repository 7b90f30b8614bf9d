"""
Module: capital_kernel.selectors.journal_selector
Responsibility: Read access to journal entries and their lines.
Architecture position: Kernel > Selectors.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select

from capital_kernel.models.journal import JournalEntry
from capital_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector):

    def get_entry(self, entry_id: UUID) -> JournalEntry | None:
        return self.session.get(JournalEntry, entry_id)

    def get_by_number(self, entry_number: str) -> JournalEntry | None:
        return self.session.execute(
            select(JournalEntry).where(JournalEntry.entry_number == entry_number)
        ).scalar_one_or_none()

    def list_entries(
        self,
        from_date: date | None = None,
        to_date: date | None = None,
        source_type: str | None = None,
        limit: int = 100,
    ) -> list[JournalEntry]:
        """Entries newest first, optionally filtered by date window and source."""
        query = select(JournalEntry)
        if from_date is not None:
            query = query.where(JournalEntry.entry_date >= from_date)
        if to_date is not None:
            query = query.where(JournalEntry.entry_date <= to_date)
        if source_type is not None:
            query = query.where(JournalEntry.source_type == source_type)
        query = query.order_by(
            JournalEntry.entry_date.desc(), JournalEntry.entry_number.desc()
        ).limit(limit)
        return list(self.session.execute(query).scalars().all())
