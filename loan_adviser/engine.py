"""Core calculation engine for the loan adviser.

This module implements the flat-interest payment model used by the lending
business and the schedule generator that turns loan terms into dated
installments. Interest is charged on the original principal for the whole
term (``principal * rate * term``) and spread evenly over the installments;
there is no declining-balance amortization.

The nominal term is always expressed in months. The payment frequency decides
how many installments that term expands into and how far apart they fall:

=========== ==================== ===========================================
Frequency   Installments         Spacing
=========== ==================== ===========================================
weekly      term * 4             7 days from the start date
bi-weekly   term * 2             14 days, or the 1st/15th of each month
monthly     term                 last day of each calendar month
quarterly   ceil(term / 3)       90 days from the start date
=========== ==================== ===========================================

Monthly due dates do not step one calendar month with day overflow (a start
on the 31st would skip February and put two installments in March). Every
monthly installment is pinned to the last day of its month instead, so each
calendar month of the term receives exactly one.
"""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal, getcontext
from typing import List

from .data_models import BiWeeklyConvention, Installment, LoanTerms, PaymentFrequency
from .utils import add_months, month_end, month_start

getcontext().prec = 28  # increase precision for financial calculations

_DAY_SPACING = {
    PaymentFrequency.WEEKLY: 7,
    PaymentFrequency.BIWEEKLY: 14,
    PaymentFrequency.QUARTERLY: 90,
}


def compute_periodic_payment(
    principal: Decimal,
    rate: Decimal,
    term: int,
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
) -> Decimal:
    """Return the constant per-installment amount of a flat-interest loan.

    The formula is:

        total = P + P * (r / 100) * n
        monthly = total / n

    where ``P`` is the principal, ``r`` the interest rate in percent per month
    and ``n`` the term in months. The monthly amount is then scaled to the
    payment frequency: a quarter of it for weekly, half for bi-weekly, three
    times it for quarterly.

    Inputs are not validated here; callers substitute defaults first (see
    :mod:`loan_adviser.validation`).
    """
    total_interest = principal * (rate / Decimal(100)) * Decimal(term)
    total_repayment = principal + total_interest
    base_monthly_payment = total_repayment / Decimal(term)
    if frequency == PaymentFrequency.WEEKLY:
        return base_monthly_payment / Decimal(4)
    if frequency == PaymentFrequency.BIWEEKLY:
        return base_monthly_payment / Decimal(2)
    if frequency == PaymentFrequency.QUARTERLY:
        return base_monthly_payment * Decimal(3)
    return base_monthly_payment


def installment_count(term: int, frequency: PaymentFrequency) -> int:
    """Number of installments a ``term``-month loan expands into."""
    if frequency == PaymentFrequency.WEEKLY:
        return term * 4
    if frequency == PaymentFrequency.BIWEEKLY:
        return term * 2
    if frequency == PaymentFrequency.QUARTERLY:
        return -(-term // 3)
    return term


def _next_calendar_pinned(current: date) -> date:
    # 1st and 15th of every month, strictly after ``current``
    if current.day < 15:
        return current.replace(day=15)
    return month_start(add_months(current, 1))


def generate_due_dates(
    start_date: date,
    term: int,
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY,
    biweekly_convention: BiWeeklyConvention = BiWeeklyConvention.FIXED_INTERVAL,
) -> List[date]:
    """Return the ordered due dates of a loan starting on ``start_date``.

    The first due date is never the start date itself: it is one spacing
    interval later, except for monthly loans whose first installment falls on
    the last day of the start month. Every later monthly installment falls on
    the last day of the following calendar month, so each month receives
    exactly one installment.
    """
    count = installment_count(term, frequency)
    if frequency == PaymentFrequency.MONTHLY:
        first = month_start(start_date)
        return [month_end(add_months(first, k)) for k in range(count)]

    if frequency == PaymentFrequency.BIWEEKLY and biweekly_convention == BiWeeklyConvention.CALENDAR_PINNED:
        dates: List[date] = []
        current = start_date
        for _ in range(count):
            current = _next_calendar_pinned(current)
            dates.append(current)
        return dates

    spacing = timedelta(days=_DAY_SPACING[frequency])
    return [start_date + spacing * (k + 1) for k in range(count)]


def generate_installments(terms: LoanTerms, start_date: date) -> List[Installment]:
    """Build the full list of installments for one loan.

    Every installment carries the same amount, computed by
    :func:`compute_periodic_payment`.
    """
    amount = compute_periodic_payment(terms.principal, terms.rate, terms.term, terms.frequency)
    due_dates = generate_due_dates(start_date, terms.term, terms.frequency, terms.biweekly_convention)
    return [Installment(due_date=d, amount=amount) for d in due_dates]
