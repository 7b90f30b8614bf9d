"""Tests for opportunistic posting through ledger sinks."""

from datetime import date
from decimal import Decimal

import pytest

from capital_kernel.models.journal import JournalEntry
from capital_kernel.services.ledger_sink import (
    AccountPairSink,
    NullLedgerSink,
    ledger_sink_for,
)


class TestLedgerSinkFor:

    def test_both_accounts_gives_pair_sink(self, posting_service, chart):
        sink = ledger_sink_for(posting_service, chart.cash, chart.equity)
        assert isinstance(sink, AccountPairSink)
        assert sink.debit_account_id == chart.cash
        assert sink.credit_account_id == chart.equity

    @pytest.mark.parametrize("missing", ["debit", "credit", "both"])
    def test_missing_account_gives_null_sink(self, posting_service, chart, missing):
        debit = None if missing in ("debit", "both") else chart.cash
        credit = None if missing in ("credit", "both") else chart.equity
        assert isinstance(ledger_sink_for(posting_service, debit, credit), NullLedgerSink)


class TestSinks:

    def test_pair_sink_posts_and_returns_entry_id(self, session, posting_service, chart):
        sink = ledger_sink_for(posting_service, chart.cash, chart.equity)
        entry_id = sink.post(
            Decimal("500"), date(2024, 2, 1), "Contribution", "INV",
            debit_memo="cash in", credit_memo="capital",
        )

        entry = session.get(JournalEntry, entry_id)
        assert entry.source_type == "INV"
        assert [line.line_memo for line in entry.lines] == ["cash in", "capital"]
        assert [line.account_id for line in entry.lines] == [chart.cash, chart.equity]

    def test_null_sink_posts_nothing(self, session):
        entry_id = NullLedgerSink().post(Decimal("500"), date(2024, 2, 1), "Nothing", "INV")

        assert entry_id is None
        assert session.query(JournalEntry).count() == 0
