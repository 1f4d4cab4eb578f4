"""Output helpers for the loan adviser.

This module renders projections, installment lists and statistics as plain
text tables. Currency display is controlled by a :class:`CurrencyFormat`
value passed to each function; the engine itself never formats amounts.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Union

from .data_models import Installment, ProjectionRow

Number = Union[Decimal, float, int]


@dataclass(frozen=True)
class CurrencyFormat:
    code: str
    label: str
    prefix: str = ""
    suffix: str = ""
    decimals: int = 2

    def format(self, amount: Number) -> str:
        value = float(amount)
        sign = "-" if value < 0 else ""
        return f"{sign}{self.prefix}{abs(value):,.{self.decimals}f}{self.suffix}"


CURRENCY_OPTIONS: Dict[str, CurrencyFormat] = {
    "USD": CurrencyFormat("USD", "US dollar", prefix="$"),
    "EUR": CurrencyFormat("EUR", "Euro", prefix="€"),
    "GBP": CurrencyFormat("GBP", "British pound", prefix="£"),
    "PLN": CurrencyFormat("PLN", "Polish złoty", suffix=" zł"),
    "PHP": CurrencyFormat("PHP", "Philippine peso", prefix="₱"),
}
DEFAULT_CURRENCY = CURRENCY_OPTIONS["USD"]


def currency_for(code: str) -> CurrencyFormat:
    return CURRENCY_OPTIONS.get((code or "").upper(), DEFAULT_CURRENCY)


def print_installments(installments: Iterable[Installment], currency: CurrencyFormat = DEFAULT_CURRENCY) -> None:
    """Print one line per installment."""
    print("\t".join(["No", "Due date", "Month", "Amount"]))
    for number, inst in enumerate(installments, start=1):
        print("\t".join([str(number), inst.due_date.isoformat(), inst.month_key, currency.format(inst.amount)]))


def print_projection(rows: Iterable[ProjectionRow], currency: CurrencyFormat = DEFAULT_CURRENCY) -> None:
    """Print the projection table.

    The new-loan and running-capital columns are added when the rows come
    from a rolling simulation.
    """
    rows = list(rows)
    rolling = any(row.new_loans_issued is not None for row in rows)
    headers = ["Month", "Existing", "New loans", "Total"]
    if rolling:
        headers += ["Issued", "Capital"]
    print("\t".join(headers))
    for row in rows:
        cells = [
            row.month_label,
            currency.format(row.existing_receivables),
            currency.format(row.potential_payment),
            currency.format(row.total_receivables),
        ]
        if rolling:
            cells.append(str(row.new_loans_issued or 0))
            cells.append(currency.format(row.running_capital or 0))
        print("\t".join(cells))


def print_statistics(statistics: Dict[str, object], currency: CurrencyFormat = DEFAULT_CURRENCY) -> None:
    """Print single-loan or rolling statistics in a human-readable format."""
    print("Summary")
    print("-" * 72)
    if "total_new_loans" in statistics:
        print(f"New loans issued   : {statistics['total_new_loans']}")
        print(f"Principal deployed : {currency.format(statistics['total_principal'])}")
        print(f"Total interest     : {currency.format(statistics['total_interest'])}")
        print(f"Total payments     : {currency.format(statistics['total_payments'])}")
        print(f"Final capital      : {currency.format(statistics['final_capital'])}")
        print(f"Interest ratio     : {statistics['interest_to_loan_ratio']:.2f}%")
        print(f"Loans per month    : {statistics['average_monthly_loan_issue']:.2f}")
        print(f"Return per month   : {currency.format(statistics['average_monthly_return'])}")
    else:
        print(f"Loan principal     : {currency.format(statistics['loan_principal'])}")
        print(f"Total interest     : {currency.format(statistics['total_interest'])}")
        print(f"Total payments     : {currency.format(statistics['total_payments'])}")
        print(f"Interest ratio     : {statistics['interest_to_loan_ratio']:.2f}%")
        print(f"Installments       : {statistics['months_with_payments']}")
    print(f"Projection period  : {statistics['projection_period_months']} months")
    print("-" * 72)
