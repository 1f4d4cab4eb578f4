"""Boundary validation of projection inputs.

Raw inputs (CLI options, configuration files, query-style mappings) are
turned into a :class:`~loan_adviser.data_models.ProjectionRequest` here, so
the engine itself never sees bad numbers.

Two policies are available:

``normalize_request``
    Lenient. Any missing or invalid value is replaced by its default and the
    substitution is logged as a warning.
``validate_request``
    Strict. Missing values still take their defaults, but every invalid value
    is collected and reported at once through :class:`LoanInputError`.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from . import config
from .data_models import BiWeeklyConvention, PaymentFrequency, ProjectionRequest
from .receivables import parse_manual_receivables, parse_recurring_receivables
from .utils import decimal_from_str

logger = logging.getLogger(__name__)

# Alternative spellings accepted for each field (configuration documents use
# the short names).
_ALIASES = {
    "loanAmount": ("loanAmount", "amount"),
    "interestRate": ("interestRate", "interest"),
    "loanTermMonths": ("loanTermMonths", "loanTerms", "terms"),
    "paymentScheme": ("paymentScheme", "scheme"),
    "rollingLoansEnabled": ("rollingLoansEnabled", "rollingLoans", "rolling"),
    "horizonMonths": ("horizonMonths", "projectionPeriod", "period"),
    "useManualReceivables": ("useManualReceivables", "useManual"),
    "biweeklyConvention": ("biweeklyConvention",),
    "threshold": ("threshold",),
}


class LoanInputError(ValueError):
    """Raised by :func:`validate_request` when inputs are invalid.

    ``fields`` maps each offending field name to a short explanation.
    """

    def __init__(self, fields: Dict[str, str]) -> None:
        self.fields = dict(fields)
        details = ", ".join(f"{name} ({reason})" for name, reason in self.fields.items())
        super().__init__(f"Invalid loan input: {details}")


def _lookup(raw: Mapping[str, Any], name: str) -> Any:
    for alias in _ALIASES[name]:
        value = raw.get(alias)
        if value is not None and value != "":
            return value
    return None


def _number(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("must be a number")
    try:
        return decimal_from_str(value)
    except ValueError:
        raise ValueError("must be a number") from None


def _positive_decimal(value: Any) -> Decimal:
    result = _number(value)
    if result <= 0:
        raise ValueError("must be positive")
    return result


def _non_negative_decimal(value: Any) -> Decimal:
    result = _number(value)
    if result < 0:
        raise ValueError("must not be negative")
    return result


def _integer(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("must be a whole number")
    number = _number(value)
    if number != number.to_integral_value():
        raise ValueError("must be a whole number")
    return int(number)


def _positive_integer(value: Any) -> int:
    result = _integer(value)
    if result <= 0:
        raise ValueError("must be positive")
    return result


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off"):
        return False
    raise ValueError("must be true or false")


def _scheme(value: Any) -> PaymentFrequency:
    try:
        return PaymentFrequency.parse(value)
    except ValueError:
        raise ValueError("must be weekly, bi-weekly, monthly or quarterly") from None


def _convention(value: Any) -> BiWeeklyConvention:
    try:
        return BiWeeklyConvention(str(value).strip().lower())
    except ValueError:
        raise ValueError("must be fixed-interval or calendar-pinned") from None


_PARSERS: Dict[str, Tuple[Callable[[Any], Any], Any]] = {
    "loanAmount": (_positive_decimal, config.DEFAULT_LOAN_AMOUNT),
    "interestRate": (_non_negative_decimal, config.DEFAULT_INTEREST_RATE),
    "loanTermMonths": (_positive_integer, config.DEFAULT_TERM_MONTHS),
    "paymentScheme": (_scheme, config.DEFAULT_PAYMENT_SCHEME),
    "rollingLoansEnabled": (_flag, False),
    "useManualReceivables": (_flag, False),
    "biweeklyConvention": (_convention, BiWeeklyConvention.FIXED_INTERVAL),
    "threshold": (_positive_decimal, None),
}


def _collect(raw: Mapping[str, Any]) -> Tuple[Dict[str, Any], Dict[str, str]]:
    values: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    for name, (parser, default) in _PARSERS.items():
        value = _lookup(raw, name)
        if value is None:
            values[name] = default
            continue
        try:
            values[name] = parser(value)
        except ValueError as exc:
            errors[name] = str(exc)
            values[name] = default

    horizon_raw = _lookup(raw, "horizonMonths")
    horizon: Optional[int] = None
    if horizon_raw is not None:
        try:
            horizon = _integer(horizon_raw)
            if horizon < 0:
                raise ValueError("must not be negative")
        except ValueError as exc:
            errors["horizonMonths"] = str(exc)
            horizon = None
    if not horizon:
        horizon = (
            config.DEFAULT_ROLLING_HORIZON_MONTHS
            if values["rollingLoansEnabled"]
            else config.DEFAULT_SINGLE_LOAN_HORIZON_MONTHS
        )
    values["horizonMonths"] = horizon
    return values, errors


def _build(raw: Mapping[str, Any], values: Dict[str, Any]) -> ProjectionRequest:
    use_manual = values["useManualReceivables"]
    return ProjectionRequest(
        loan_amount=values["loanAmount"],
        interest_rate=values["interestRate"],
        loan_term_months=values["loanTermMonths"],
        payment_scheme=values["paymentScheme"],
        rolling_loans=values["rollingLoansEnabled"],
        horizon_months=values["horizonMonths"],
        use_manual_receivables=use_manual,
        manual_receivables=parse_manual_receivables(raw.get("manualReceivables")) if use_manual else [],
        recurring_receivables=parse_recurring_receivables(raw.get("recurringReceivables")) if use_manual else [],
        biweekly_convention=values["biweeklyConvention"],
        threshold=values["threshold"],
    )


def normalize_request(raw: Mapping[str, Any]) -> ProjectionRequest:
    """Build a request, replacing invalid values by their defaults."""
    values, errors = _collect(raw or {})
    for name, reason in errors.items():
        logger.warning(f"Invalid {name} ({reason}); using default {values[name]}")
    return _build(raw or {}, values)


def validate_request(raw: Mapping[str, Any]) -> ProjectionRequest:
    """Build a request, raising :class:`LoanInputError` on any invalid value."""
    values, errors = _collect(raw or {})
    if errors:
        raise LoanInputError(errors)
    return _build(raw or {}, values)
