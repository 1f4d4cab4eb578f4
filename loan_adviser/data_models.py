"""Data models for the loan adviser.

This module defines the enums and dataclasses shared by the cash-flow engine:
payment frequencies, loan terms, generated installments, manual and recurring
receivables, projection rows and the loans created by the rolling simulation.
Money values are ``Decimal`` throughout; conversion to floats only happens
when results are serialized.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from .utils import month_key


class PaymentFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"

    @property
    def label(self) -> str:
        return {
            "weekly": "Weekly",
            "bi-weekly": "Bi-Weekly",
            "monthly": "Monthly",
            "quarterly": "Quarterly",
        }[self.value]

    @classmethod
    def parse(cls, value: Any) -> "PaymentFrequency":
        """Parse a scheme name such as ``"Bi-Weekly"`` or ``"biweekly"``.

        Raises ``ValueError`` for anything that is not one of the four schemes.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Invalid payment scheme: {value!r}")
        cleaned = value.strip().lower().replace("_", "-")
        if cleaned == "biweekly":
            cleaned = "bi-weekly"
        try:
            return cls(cleaned)
        except ValueError as exc:
            raise ValueError(f"Invalid payment scheme: {value!r}") from exc


class BiWeeklyConvention(str, Enum):
    """How bi-weekly due dates are placed on the calendar.

    ``FIXED_INTERVAL`` spaces installments 14 days apart starting from the
    loan start date. ``CALENDAR_PINNED`` puts them on the 1st and the 15th of
    each month.
    """

    FIXED_INTERVAL = "fixed-interval"
    CALENDAR_PINNED = "calendar-pinned"


class RecurrenceFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"

    @property
    def step(self) -> int:
        """Number of months between two occurrences."""
        return {"monthly": 1, "quarterly": 3, "annually": 12}[self.value]


@dataclass(frozen=True)
class LoanTerms:
    """Parameters of a single flat-interest loan.

    Attributes
    ----------
    principal: Decimal
        Amount lent. Must be positive.
    rate: Decimal
        Interest rate in percent per nominal month (e.g. ``Decimal("1.5")``).
    term: int
        Loan term in nominal months.
    frequency: PaymentFrequency
        Installment cadence.
    biweekly_convention: BiWeeklyConvention
        Calendar convention used when ``frequency`` is bi-weekly.
    """

    principal: Decimal
    rate: Decimal
    term: int
    frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    biweekly_convention: BiWeeklyConvention = BiWeeklyConvention.FIXED_INTERVAL


@dataclass
class Installment:
    """One scheduled payment of a loan, bucketed by its calendar month."""

    due_date: date
    amount: Decimal
    month_key: str = field(init=False)

    def __post_init__(self) -> None:
        self.month_key = month_key(self.due_date)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.due_date.isoformat(),
            "amount": float(self.amount),
            "month_key": self.month_key,
        }


@dataclass
class ManualReceivable:
    """A hypothetical one-off receivable declared for a given month."""

    month_key: str
    amount: Decimal
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monthKey": self.month_key,
            "amount": float(self.amount),
            "description": self.description,
        }


@dataclass
class RecurringReceivable:
    """A receivable injected every month, quarter or year from a start month."""

    start_month_key: str
    amount: Decimal
    frequency: RecurrenceFrequency = RecurrenceFrequency.MONTHLY
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startMonthKey": self.start_month_key,
            "amount": float(self.amount),
            "frequency": self.frequency.value,
            "description": self.description,
        }


@dataclass
class ProjectionRow:
    """One month of a cash-flow projection.

    ``new_loans_issued`` and ``running_capital`` are only populated by the
    rolling-loan simulation.
    """

    month_key: str
    month_label: str
    existing_receivables: Decimal
    potential_payment: Decimal
    total_receivables: Decimal
    new_loans_issued: Optional[int] = None
    running_capital: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "month_key": self.month_key,
            "month": self.month_label,
            "existing_receivables": float(self.existing_receivables),
            "potential_payment": float(self.potential_payment),
            "total_receivables": float(self.total_receivables),
        }
        if self.new_loans_issued is not None:
            data["new_loans_issued"] = self.new_loans_issued
        if self.running_capital is not None:
            data["running_capital"] = float(self.running_capital)
        return data


@dataclass
class SimulatedLoan:
    """A loan originated by the rolling simulation. Never persisted."""

    start_date: date
    principal: Decimal
    installments: List[Installment]

    @property
    def total_repayment(self) -> Decimal:
        return sum((i.amount for i in self.installments), Decimal("0"))

    @property
    def interest(self) -> Decimal:
        return self.total_repayment - self.principal


@dataclass
class ProjectionRequest:
    """Validated inputs of a cash-flow projection.

    This configuration collects all user inputs into a single object. Use
    :mod:`loan_adviser.validation` to build one from raw (untrusted) values.
    """

    loan_amount: Decimal
    interest_rate: Decimal
    loan_term_months: int
    payment_scheme: PaymentFrequency
    rolling_loans: bool
    horizon_months: int
    use_manual_receivables: bool
    manual_receivables: List[ManualReceivable] = field(default_factory=list)
    recurring_receivables: List[RecurringReceivable] = field(default_factory=list)
    biweekly_convention: BiWeeklyConvention = BiWeeklyConvention.FIXED_INTERVAL
    # Capital needed before the rolling simulation originates loans. ``None``
    # means one loan's principal.
    threshold: Optional[Decimal] = None

    @property
    def loan_terms(self) -> LoanTerms:
        return LoanTerms(
            principal=self.loan_amount,
            rate=self.interest_rate,
            term=self.loan_term_months,
            frequency=self.payment_scheme,
            biweekly_convention=self.biweekly_convention,
        )


@dataclass
class ProjectionResult:
    """Everything a cash-flow projection produces."""

    request: ProjectionRequest
    existing_receivables: Dict[str, Decimal]
    potential_installments: List[Installment]
    projection: List[ProjectionRow]
    statistics: Dict[str, Any]
    issued_loans: List[SimulatedLoan] = field(default_factory=list)

    @property
    def receivables_source(self) -> str:
        return "manual" if self.request.use_manual_receivables else "scheduled"

    def to_dict(self) -> Dict[str, Any]:
        req = self.request
        return {
            "existing_receivables": {k: float(v) for k, v in self.existing_receivables.items()},
            "potential_loan_payments": [i.to_dict() for i in self.potential_installments],
            "cash_flow_projection": [row.to_dict() for row in self.projection],
            "loan_amount": float(req.loan_amount),
            "interest_rate": float(req.interest_rate),
            "loan_term_months": req.loan_term_months,
            "payment_scheme": req.payment_scheme.value,
            "rolling_loans": req.rolling_loans,
            "projection_months": req.horizon_months,
            "use_manual_receivables": req.use_manual_receivables,
            "receivables_source": self.receivables_source,
            "statistics": self.statistics,
        }
