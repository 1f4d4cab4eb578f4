"""Rolling-loan simulation.

The rolling strategy recycles capital: every month the receivables collected
are added to a capital pool, and as soon as the pool can fund one or more new
loans they are originated. Each new loan then contributes its own future
installments back into the pool, so the portfolio compounds over the
projection horizon.

The simulation is written as a pure reducer. :class:`SimulationState` holds
everything carried from one month to the next and :func:`advance_month`
returns a new state for month ``i`` without touching the previous one.
:func:`simulate` just folds the reducer over the horizon.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from .config import DEFAULT_LOAN_AMOUNT, FALLBACK_HORIZON_MONTHS
from .data_models import Installment, LoanTerms, PaymentFrequency, ProjectionRow, SimulatedLoan
from .engine import generate_installments
from .utils import add_months, month_end, month_key, month_label, month_start


@dataclass(frozen=True)
class SimulationParams:
    """Inputs that stay fixed for the whole run."""

    existing: Mapping[str, Decimal]
    terms: LoanTerms
    threshold: Decimal
    first_month: date


@dataclass(frozen=True)
class SimulationState:
    available_capital: Decimal = Decimal("0")
    issued_loans: Tuple[SimulatedLoan, ...] = ()
    issued_installments: Tuple[Installment, ...] = ()
    # Installment totals of issued loans keyed by month
    issued_by_month: Mapping[str, Decimal] = field(default_factory=dict)
    rows: Tuple[ProjectionRow, ...] = ()


@dataclass
class RollingResult:
    projection: List[ProjectionRow]
    issued_loans: List[SimulatedLoan]
    all_issued_installments: List[Installment]


def originate_loan(terms: LoanTerms, issue_month: date) -> SimulatedLoan:
    """Create a loan funded on the last day of ``issue_month``.

    The schedule is generated from that day. Monthly schedules would put
    their first installment on the start day itself, so they run from the
    next day instead; every other frequency already lands in a later month.
    """
    start = month_end(issue_month)
    schedule_start = start
    if terms.frequency == PaymentFrequency.MONTHLY:
        schedule_start = start + timedelta(days=1)
    installments = generate_installments(terms, schedule_start)
    return SimulatedLoan(start_date=start, principal=terms.principal, installments=installments)


def advance_month(state: SimulationState, month_index: int, params: SimulationParams) -> SimulationState:
    """Simulate month ``month_index`` and return the resulting state.

    Only loans issued in earlier months contribute installments to this
    month. The month's inflow is added to the pool before any loan is
    funded, and whatever cannot fund a whole loan is carried forward.
    """
    anchor = add_months(params.first_month, month_index).replace(day=15)
    key = month_key(anchor)

    existing_amount = params.existing.get(key, Decimal("0"))
    issued_amount = state.issued_by_month.get(key, Decimal("0"))
    total = existing_amount + issued_amount

    capital = state.available_capital + total
    principal = params.terms.principal
    loans_to_issue = 0
    if capital >= params.threshold:
        loans_to_issue = max(0, int(capital // principal))
    capital -= principal * loans_to_issue

    new_loans = [originate_loan(params.terms, anchor) for _ in range(loans_to_issue)]
    new_installments = [inst for loan in new_loans for inst in loan.installments]
    issued_by_month: Dict[str, Decimal] = dict(state.issued_by_month)
    for inst in new_installments:
        issued_by_month[inst.month_key] = issued_by_month.get(inst.month_key, Decimal("0")) + inst.amount

    row = ProjectionRow(
        month_key=key,
        month_label=month_label(anchor),
        existing_receivables=existing_amount,
        potential_payment=issued_amount,
        total_receivables=total,
        new_loans_issued=loans_to_issue,
        running_capital=capital,
    )
    return replace(
        state,
        available_capital=capital,
        issued_loans=state.issued_loans + tuple(new_loans),
        issued_installments=state.issued_installments + tuple(new_installments),
        issued_by_month=issued_by_month,
        rows=state.rows + (row,),
    )


def simulate(
    existing: Optional[Mapping[str, Decimal]],
    terms: LoanTerms,
    horizon_months: int,
    today: date,
    threshold: Optional[Decimal] = None,
) -> RollingResult:
    """Run the rolling-loan simulation for ``horizon_months`` months.

    Parameters
    ----------
    existing: Mapping[str, Decimal]
        Receivables already expected, keyed by month.
    terms: LoanTerms
        Terms of every loan the simulation originates. A non-positive
        principal falls back to the default loan amount.
    horizon_months: int
        Number of months to simulate, starting with the month of ``today``.
        Non-positive values fall back to twelve.
    threshold: Decimal, optional
        Capital required before any loan is originated in a month. Defaults
        to one loan's principal.
    """
    if horizon_months <= 0:
        horizon_months = FALLBACK_HORIZON_MONTHS
    if terms.principal <= 0:
        terms = replace(terms, principal=DEFAULT_LOAN_AMOUNT)
    params = SimulationParams(
        existing=existing or {},
        terms=terms,
        threshold=threshold if threshold is not None and threshold > 0 else terms.principal,
        first_month=month_start(today),
    )

    state = SimulationState()
    for i in range(horizon_months):
        state = advance_month(state, i, params)

    return RollingResult(
        projection=list(state.rows),
        issued_loans=list(state.issued_loans),
        all_issued_installments=list(state.issued_installments),
    )


def rolling_statistics(result: RollingResult, principal: Decimal, horizon_months: int) -> Dict[str, object]:
    """Aggregate metrics of a rolling simulation."""
    total_new_loans = len(result.issued_loans)
    total_principal = principal * total_new_loans
    total_interest = sum((loan.interest for loan in result.issued_loans), Decimal("0"))
    total_payments = sum((i.amount for i in result.all_issued_installments), Decimal("0"))
    final_capital = result.projection[-1].running_capital if result.projection else Decimal("0")
    ratio = total_interest / total_principal * 100 if total_principal > 0 else Decimal("0")
    return {
        "total_new_loans": total_new_loans,
        "total_principal": float(total_principal),
        "total_interest": float(total_interest),
        "total_payments": float(total_payments),
        "final_capital": float(final_capital),
        "interest_to_loan_ratio": float(ratio),
        "projection_period_months": horizon_months,
        "average_monthly_loan_issue": total_new_loans / horizon_months if horizon_months > 0 else 0.0,
        "average_monthly_return": float(total_payments / horizon_months) if horizon_months > 0 else 0.0,
    }
