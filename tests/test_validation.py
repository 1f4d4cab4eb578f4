"""Input validation tests."""
import logging
from decimal import Decimal

import pytest

from loan_adviser.data_models import BiWeeklyConvention, PaymentFrequency
from loan_adviser.validation import LoanInputError, normalize_request, validate_request


class TestNormalize:
    def test_defaults_for_empty_input(self):
        request = normalize_request({})
        assert request.loan_amount == Decimal("50000")
        assert request.interest_rate == Decimal("1.5")
        assert request.loan_term_months == 12
        assert request.payment_scheme == PaymentFrequency.MONTHLY
        assert request.rolling_loans is False
        assert request.use_manual_receivables is False
        assert request.horizon_months == 24
        assert request.threshold is None

    def test_rolling_default_horizon(self):
        assert normalize_request({"rollingLoansEnabled": "true"}).horizon_months == 12

    def test_zero_horizon_takes_default(self):
        assert normalize_request({"horizonMonths": 0}).horizon_months == 24

    def test_invalid_values_are_replaced_and_logged(self, caplog):
        raw = {"loanAmount": "abc", "interestRate": -2, "loanTermMonths": 0, "paymentScheme": "daily"}
        with caplog.at_level(logging.WARNING, logger="loan_adviser.validation"):
            request = normalize_request(raw)
        assert request.loan_amount == Decimal("50000")
        assert request.interest_rate == Decimal("1.5")
        assert request.loan_term_months == 12
        assert request.payment_scheme == PaymentFrequency.MONTHLY
        assert "Invalid loanAmount (must be a number)" in caplog.text
        assert "Invalid paymentScheme" in caplog.text

    def test_aliases(self):
        request = normalize_request(
            {"amount": "20,000", "interest": "2", "terms": "6", "scheme": "Bi-Weekly",
             "rolling": True, "period": "18"}
        )
        assert request.loan_amount == Decimal("20000")
        assert request.interest_rate == Decimal("2")
        assert request.loan_term_months == 6
        assert request.payment_scheme == PaymentFrequency.BIWEEKLY
        assert request.rolling_loans is True
        assert request.horizon_months == 18

    def test_zero_interest_is_allowed(self):
        assert normalize_request({"interestRate": 0}).interest_rate == 0

    def test_biweekly_convention(self):
        request = normalize_request({"paymentScheme": "biweekly", "biweeklyConvention": "calendar-pinned"})
        assert request.biweekly_convention == BiWeeklyConvention.CALENDAR_PINNED
        assert request.loan_terms.biweekly_convention == BiWeeklyConvention.CALENDAR_PINNED

    def test_manual_receivables_only_parsed_in_manual_mode(self):
        batch = [{"monthKey": "2025-06", "amount": 1000}]
        assert normalize_request({"manualReceivables": batch}).manual_receivables == []
        manual = normalize_request({"useManualReceivables": "yes", "manualReceivables": batch})
        assert manual.manual_receivables[0].month_key == "2025-06"
        assert manual.manual_receivables[0].amount == Decimal("1000")

    def test_recurring_receivables_json(self):
        request = normalize_request(
            {"useManual": True,
             "recurringReceivables": '[{"startMonthKey": "2025-02", "amount": 75, "frequency": "annually"}]'}
        )
        assert request.recurring_receivables[0].start_month_key == "2025-02"


class TestValidate:
    def test_valid_input(self):
        request = validate_request({"loanAmount": "10000", "loanTermMonths": 3, "threshold": "25000"})
        assert request.loan_amount == Decimal("10000")
        assert request.threshold == Decimal("25000")

    def test_every_offending_field_is_reported(self):
        with pytest.raises(LoanInputError) as excinfo:
            validate_request({"loanAmount": -5, "loanTermMonths": 2.5, "horizonMonths": -1, "rolling": "maybe"})
        fields = excinfo.value.fields
        assert set(fields) == {"loanAmount", "loanTermMonths", "horizonMonths", "rollingLoansEnabled"}
        assert fields["loanAmount"] == "must be positive"
        assert fields["loanTermMonths"] == "must be a whole number"
        assert "loanAmount (must be positive)" in str(excinfo.value)

    def test_booleans_are_not_numbers(self):
        with pytest.raises(LoanInputError) as excinfo:
            validate_request({"loanAmount": True})
        assert excinfo.value.fields == {"loanAmount": "must be a number"}

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            validate_request({"interestRate": "nan"})
