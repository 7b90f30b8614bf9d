"""Tests for entry-number allocation."""

from datetime import date
from decimal import Decimal

import pytest

from capital_kernel.services.entry_numbering import (
    DOCUMENT_PREFIXES,
    KNOWN_PREFIXES,
    EntryNumberGenerator,
    format_entry_number,
)
from capital_kernel.services.ledger_posting_service import balanced_pair


class TestFormatEntryNumber:

    def test_zero_padded(self):
        assert format_entry_number("INV", 42) == "INV-000042"

    def test_prefix_normalized(self):
        assert format_entry_number(" inv ", 7) == "INV-000007"

    def test_custom_width(self):
        assert format_entry_number("PAY", 3, width=4) == "PAY-0003"

    def test_non_positive_value_rejected(self):
        with pytest.raises(ValueError):
            format_entry_number("INV", 0)

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValueError):
            format_entry_number("  ", 1)


class TestEntryNumberGenerator:

    def test_known_prefixes_seeded_with_schema(self, session):
        generator = EntryNumberGenerator(session)
        for prefix in KNOWN_PREFIXES + DOCUMENT_PREFIXES:
            assert generator.current_value(prefix) == 0
        assert "MFI" in KNOWN_PREFIXES

    def test_sequential_per_prefix(self, session):
        generator = EntryNumberGenerator(session)

        assert generator.generate("INV") == "INV-000001"
        assert generator.generate("INV") == "INV-000002"
        assert generator.generate("DIST") == "DIST-000001"
        assert generator.current_value("INV") == 2

    def test_ad_hoc_prefix_created_on_first_use(self, session):
        generator = EntryNumberGenerator(session)
        assert generator.current_value("ADJ") is None

        assert generator.generate("adj") == "ADJ-000001"
        assert generator.current_value("ADJ") == 1

    def test_initialize_is_idempotent(self, session):
        generator = EntryNumberGenerator(session)
        generator.generate("INV")
        generator.initialize()

        assert generator.current_value("INV") == 1

    def test_rolled_back_number_is_reused(self, db_engine):
        from capital_kernel.db.engine import get_session

        first = get_session()
        EntryNumberGenerator(first).generate("SHARE")
        first.rollback()
        first.close()

        second = get_session()
        assert EntryNumberGenerator(second).generate("SHARE") == "SHARE-000001"
        second.rollback()
        second.close()


def test_posted_entries_have_unique_numbers(session, posting_service, chart):
    numbers = {
        posting_service.post_entry(
            date(2024, 1, 1), "Loop", "INV",
            balanced_pair(chart.cash, chart.equity, Decimal("1")),
        ).entry_number
        for _ in range(25)
    }
    assert len(numbers) == 25
    assert "INV-000025" in numbers
