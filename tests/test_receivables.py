"""Receivables aggregation tests."""
import json
import logging
import random
from datetime import date
from decimal import Decimal

from loan_adviser.data_models import (
    Installment,
    ManualReceivable,
    PaymentFrequency,
    ProjectionRequest,
    RecurrenceFrequency,
    RecurringReceivable,
)
from loan_adviser.receivables import (
    aggregate,
    build_existing_receivables,
    expand_recurring,
    parse_manual_receivables,
    parse_recurring_receivables,
)


def _request(use_manual, manual=None, recurring=None, horizon=12):
    return ProjectionRequest(
        loan_amount=Decimal("50000"),
        interest_rate=Decimal("1.5"),
        loan_term_months=12,
        payment_scheme=PaymentFrequency.MONTHLY,
        rolling_loans=False,
        horizon_months=horizon,
        use_manual_receivables=use_manual,
        manual_receivables=manual or [],
        recurring_receivables=recurring or [],
    )


class TestAggregate:
    def test_sums_per_month(self):
        items = [
            Installment(date(2025, 2, 3), Decimal("100")),
            Installment(date(2025, 2, 28), Decimal("50")),
            Installment(date(2025, 3, 1), Decimal("25")),
        ]
        assert aggregate(items) == {"2025-02": Decimal("150"), "2025-03": Decimal("25")}

    def test_order_independent(self):
        items = [Installment(date(2025, m, d), Decimal(m * d)) for m in range(1, 13) for d in (1, 10, 20)]
        shuffled = list(items)
        random.Random(7).shuffle(shuffled)
        assert aggregate(shuffled) == aggregate(items)
        assert list(aggregate(shuffled)) == sorted(aggregate(items))

    def test_empty(self):
        assert aggregate([]) == {}

    def test_manual_entries_share_the_fold(self):
        items = [ManualReceivable("2025-06", Decimal("1000")), ManualReceivable("2025-06", Decimal("500"))]
        assert aggregate(items) == {"2025-06": Decimal("1500")}


class TestRecurringExpansion:
    def test_monthly_every_month_including_start(self):
        rule = RecurringReceivable("2025-11", Decimal("200"), RecurrenceFrequency.MONTHLY)
        keys = [e.month_key for e in expand_recurring([rule], 4)]
        assert keys == ["2025-11", "2025-12", "2026-01", "2026-02"]

    def test_quarterly_offsets(self):
        rule = RecurringReceivable("2025-01", Decimal("300"), RecurrenceFrequency.QUARTERLY)
        keys = [e.month_key for e in expand_recurring([rule], 12)]
        assert keys == ["2025-01", "2025-04", "2025-07", "2025-10"]

    def test_annually(self):
        rule = RecurringReceivable("2025-05", Decimal("1200"), RecurrenceFrequency.ANNUALLY)
        entries = expand_recurring([rule], 24)
        assert [e.month_key for e in entries] == ["2025-05", "2026-05"]
        assert all(e.amount == Decimal("1200") for e in entries)

    def test_zero_horizon(self):
        rule = RecurringReceivable("2025-05", Decimal("1200"))
        assert expand_recurring([rule], 0) == []


class TestParsing:
    def test_parse_manual_json(self):
        raw = json.dumps([{"monthKey": "2025-06", "amount": 1000, "description": "Bonus"}])
        entries = parse_manual_receivables(raw)
        assert entries == [ManualReceivable("2025-06", Decimal("1000"), "Bonus")]

    def test_malformed_json_is_logged_and_discarded(self, caplog):
        with caplog.at_level(logging.WARNING, logger="loan_adviser.receivables"):
            assert parse_manual_receivables("[{not json") == []
        assert "malformed manual receivables" in caplog.text

    def test_one_bad_entry_discards_the_batch(self):
        raw = [{"monthKey": "2025-06", "amount": 1000}, {"monthKey": "June", "amount": 5}]
        assert parse_manual_receivables(raw) == []

    def test_parse_recurring(self):
        raw = [{"startMonthKey": "2025-01", "amount": "250.50", "frequency": "Quarterly"}]
        entries = parse_recurring_receivables(raw)
        assert entries[0].frequency == RecurrenceFrequency.QUARTERLY
        assert entries[0].amount == Decimal("250.50")

    def test_unknown_recurring_frequency_discards_batch(self):
        raw = [{"startMonthKey": "2025-01", "amount": 10, "frequency": "weekly"}]
        assert parse_recurring_receivables(raw) == []

    def test_missing_batch(self):
        assert parse_manual_receivables(None) == []
        assert parse_recurring_receivables("") == []


class TestExistingReceivables:
    def test_manual_mode_ignores_scheduled(self):
        request = _request(True, manual=[ManualReceivable("2025-06", Decimal("1000"))])
        scheduled = [Installment(date(2025, 6, 30), Decimal("999"))]
        assert build_existing_receivables(request, scheduled) == {"2025-06": Decimal("1000")}

    def test_manual_and_recurring_combined(self):
        request = _request(
            True,
            manual=[ManualReceivable("2025-03", Decimal("100"))],
            recurring=[RecurringReceivable("2025-02", Decimal("10"), RecurrenceFrequency.MONTHLY)],
            horizon=3,
        )
        assert build_existing_receivables(request) == {
            "2025-02": Decimal("10"),
            "2025-03": Decimal("110"),
            "2025-04": Decimal("10"),
        }

    def test_scheduled_mode(self):
        request = _request(False)
        scheduled = [Installment(date(2025, 6, 1), Decimal("40")), Installment(date(2025, 6, 9), Decimal("2"))]
        assert build_existing_receivables(request, scheduled) == {"2025-06": Decimal("42")}

    def test_scheduled_mode_without_ledger_rows(self):
        assert build_existing_receivables(_request(False), None) == {}
