"""Single-loan projection tests."""
from datetime import date
from decimal import Decimal

import pytest

from loan_adviser.cashflow import run_projection
from loan_adviser.data_models import Installment
from loan_adviser.engine import generate_installments
from loan_adviser.projection import combine
from loan_adviser.validation import normalize_request


class TestCombine:
    def test_one_row_per_month(self, today, default_terms):
        rows = combine({}, generate_installments(default_terms, today), 18, today)
        keys = [r.month_key for r in rows]
        assert len(rows) == 18
        assert keys == sorted(keys)
        assert len(set(keys)) == 18
        assert keys[0] == "2025-01"
        assert keys[-1] == "2026-06"

    def test_rows_for_empty_months(self, today):
        rows = combine({}, [], 3, today)
        assert [r.total_receivables for r in rows] == [0, 0, 0]
        assert rows[1].month_label == "February 2025"

    def test_totals(self, today):
        existing = {"2025-02": Decimal("300"), "2024-12": Decimal("999")}
        potential = [Installment(date(2025, 2, 14), Decimal("20")), Installment(date(2025, 2, 28), Decimal("5"))]
        rows = combine(existing, potential, 2, today)
        feb = rows[1]
        assert feb.existing_receivables == Decimal("300")
        assert feb.potential_payment == Decimal("25")
        assert feb.total_receivables == Decimal("325")
        assert rows[0].total_receivables == 0

    def test_non_positive_horizon_falls_back_to_twelve(self, today):
        assert len(combine({}, [], 0, today)) == 12
        assert len(combine(None, None, -3, today)) == 12

    def test_idempotent(self, today, default_terms):
        installments = generate_installments(default_terms, today)
        first = combine({"2025-03": Decimal("10")}, installments, 24, today)
        second = combine({"2025-03": Decimal("10")}, installments, 24, today)
        assert first == second


class TestSingleLoanScenario:
    """50k, 1.5%, 12 months, monthly, 24 month horizon"""

    @pytest.fixture
    def result(self, today):
        request = normalize_request(
            {"loanAmount": 50000, "interestRate": 1.5, "loanTermMonths": 12, "paymentScheme": "monthly",
             "horizonMonths": 24, "useManualReceivables": True}
        )
        return run_projection(request, today=today)

    def test_twelve_paying_months_then_twelve_empty(self, result):
        payments = [row.potential_payment for row in result.projection]
        assert len(payments) == 24
        assert all(p > 0 for p in payments[:12])
        assert all(p == 0 for p in payments[12:])

    def test_statistics(self, result):
        stats = result.statistics
        assert stats["loan_principal"] == 50000
        assert stats["total_interest"] == pytest.approx(9000)
        assert stats["total_payments"] == pytest.approx(59000)
        assert stats["interest_to_loan_ratio"] == pytest.approx(18)
        assert stats["months_with_payments"] == 12
        assert stats["projection_period_months"] == 24

    def test_serialized_output(self, result):
        data = result.to_dict()
        assert data["receivables_source"] == "manual"
        assert data["rolling_loans"] is False
        assert data["payment_scheme"] == "monthly"
        assert len(data["potential_loan_payments"]) == 12
        assert data["cash_flow_projection"][0]["month_key"] == "2025-01"
        assert "running_capital" not in data["cash_flow_projection"][0]


class TestManualScenario:
    def test_single_manual_receivable(self, today):
        request = normalize_request(
            {"useManualReceivables": True,
             "manualReceivables": [{"monthKey": "2025-06", "amount": 1000}]}
        )
        result = run_projection(request, today=today)
        assert result.existing_receivables == {"2025-06": Decimal("1000")}
        by_month = {row.month_key: row.existing_receivables for row in result.projection}
        assert by_month["2025-06"] == Decimal("1000")
        assert all(v == 0 for k, v in by_month.items() if k != "2025-06")

    def test_scheduled_receivables_feed_existing_column(self, today):
        request = normalize_request({"horizonMonths": 6})
        scheduled = [Installment(date(2025, 3, 5), Decimal("700")), Installment(date(2025, 3, 20), Decimal("300"))]
        result = run_projection(request, scheduled, today)
        assert result.receivables_source == "scheduled"
        assert result.projection[2].existing_receivables == Decimal("1000")
