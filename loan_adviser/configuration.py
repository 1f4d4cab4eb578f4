"""Loan configuration documents.

A configuration document saves the inputs of a projection so it can be
re-run later or shared. The format is JSON::

    {
      "version": "1.0",
      "timestamp": "2025-01-10T09:30:00",
      "loanParameters": {
        "loanAmount": 50000, "interestRate": 1.5, "loanTerms": 12,
        "paymentScheme": "monthly", "rollingLoans": false,
        "projectionPeriod": 24
      },
      "manualReceivables": [...],
      "recurringReceivables": [...],
      "useManualReceivables": false
    }
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from .config import CONFIGURATION_VERSION
from .data_models import ProjectionRequest

REQUIRED_PARAMETERS = (
    "loanAmount",
    "interestRate",
    "loanTerms",
    "paymentScheme",
    "rollingLoans",
    "projectionPeriod",
)


def build_configuration(request: ProjectionRequest, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """Return the configuration document describing ``request``."""
    timestamp = timestamp or datetime.now()
    document: Dict[str, Any] = {
        "version": CONFIGURATION_VERSION,
        "timestamp": timestamp.isoformat(timespec="seconds"),
        "loanParameters": {
            "loanAmount": float(request.loan_amount),
            "interestRate": float(request.interest_rate),
            "loanTerms": request.loan_term_months,
            "paymentScheme": request.payment_scheme.value,
            "rollingLoans": request.rolling_loans,
            "projectionPeriod": request.horizon_months,
            "biweeklyConvention": request.biweekly_convention.value,
        },
        "manualReceivables": [r.to_dict() for r in request.manual_receivables],
        "recurringReceivables": [r.to_dict() for r in request.recurring_receivables],
        "useManualReceivables": request.use_manual_receivables,
    }
    if request.threshold is not None:
        document["loanParameters"]["threshold"] = float(request.threshold)
    return document


def configuration_to_raw(document: Any) -> Dict[str, Any]:
    """Flatten a configuration document into raw request inputs.

    The result is meant for :func:`loan_adviser.validation.normalize_request`
    or :func:`~loan_adviser.validation.validate_request`.

    Raises
    ------
    ValueError
        If the document lacks the ``loanParameters`` section or any of its
        required keys.
    """
    if not isinstance(document, dict) or not isinstance(document.get("loanParameters"), dict):
        raise ValueError("Invalid configuration file format")
    params = document["loanParameters"]
    missing = [key for key in REQUIRED_PARAMETERS if key not in params]
    if missing:
        raise ValueError(f"Invalid configuration file format: missing {', '.join(missing)}")

    raw: Dict[str, Any] = dict(params)
    raw["useManualReceivables"] = document.get("useManualReceivables", False)
    if isinstance(document.get("manualReceivables"), list):
        raw["manualReceivables"] = document["manualReceivables"]
    if isinstance(document.get("recurringReceivables"), list):
        raw["recurringReceivables"] = document["recurringReceivables"]
    return raw


def save_configuration(path: Path, request: ProjectionRequest) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(build_configuration(request), f, indent=2)


def load_configuration(path: Path) -> Dict[str, Any]:
    """Read a configuration file and return raw request inputs."""
    with path.open("r", encoding="utf-8") as f:
        try:
            document = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid configuration file: {exc}") from exc
    return configuration_to_raw(document)
