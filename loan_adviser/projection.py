"""Single-loan cash-flow projection.

Combines the existing receivables with the installments of one hypothetical
new loan into a month-by-month table covering the projection horizon.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from .data_models import Installment, ProjectionRow
from .config import FALLBACK_HORIZON_MONTHS
from .utils import add_months, month_key, month_label, month_start


def _sum_by_month(installments: Iterable[Installment]) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for inst in installments:
        totals[inst.month_key] = totals.get(inst.month_key, Decimal("0")) + inst.amount
    return totals


def combine(
    existing: Mapping[str, Decimal],
    potential: Iterable[Installment],
    horizon_months: int,
    today: date,
) -> List[ProjectionRow]:
    """Return one projection row per month, starting with the month of ``today``.

    Months without any receivable still get a row with zero totals. A
    non-positive horizon falls back to twelve months.
    """
    if horizon_months <= 0:
        horizon_months = FALLBACK_HORIZON_MONTHS
    existing = existing or {}
    potential_by_month = _sum_by_month(potential or [])
    first = month_start(today)

    rows: List[ProjectionRow] = []
    for i in range(horizon_months):
        current = add_months(first, i)
        key = month_key(current)
        existing_amount = existing.get(key, Decimal("0"))
        potential_amount = potential_by_month.get(key, Decimal("0"))
        rows.append(
            ProjectionRow(
                month_key=key,
                month_label=month_label(current),
                existing_receivables=existing_amount,
                potential_payment=potential_amount,
                total_receivables=existing_amount + potential_amount,
            )
        )
    return rows


def single_loan_statistics(
    principal: Decimal,
    installments: List[Installment],
    horizon_months: int,
) -> Dict[str, object]:
    """Summary metrics for one hypothetical loan."""
    total_payments = sum((i.amount for i in installments), Decimal("0"))
    total_interest = total_payments - principal
    ratio = total_interest / principal * 100 if principal > 0 else Decimal("0")
    return {
        "loan_principal": float(principal),
        "total_interest": float(total_interest),
        "total_payments": float(total_payments),
        "interest_to_loan_ratio": float(ratio),
        "projection_period_months": horizon_months,
        "months_with_payments": len(installments),
    }
