"""Cash-flow projection entry point.

``run_projection`` ties the pieces together: it builds the existing
receivables, then either projects a single hypothetical loan on top of them
or runs the rolling-loan simulation. It performs no storage access; in
scheduled mode the caller passes the unpaid installments read from the
payment ledger.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Iterable, Optional

from .data_models import ProjectionRequest, ProjectionResult
from .engine import generate_installments
from .projection import combine, single_loan_statistics
from .receivables import build_existing_receivables
from .rolling import rolling_statistics, simulate

logger = logging.getLogger(__name__)


def run_projection(
    request: ProjectionRequest,
    scheduled: Optional[Iterable[Any]] = None,
    today: Optional[date] = None,
) -> ProjectionResult:
    """Compute the cash-flow projection described by ``request``.

    Parameters
    ----------
    request: ProjectionRequest
        Validated inputs.
    scheduled: Iterable
        Unpaid installments due on or after ``today``; ignored when the
        request uses manual receivables.
    today: date
        Anchor of the projection. The first row is the month of ``today`` and
        the hypothetical loan starts on that day. Defaults to the current
        date; pass it explicitly for reproducible results.
    """
    today = today or date.today()
    existing = build_existing_receivables(request, scheduled)

    if request.rolling_loans:
        result = simulate(
            existing,
            request.loan_terms,
            request.horizon_months,
            today,
            threshold=request.threshold,
        )
        statistics = rolling_statistics(result, request.loan_amount, request.horizon_months)
        logger.info(
            f"Rolling projection from {today:%Y-%m}: {statistics['total_new_loans']} loans over "
            f"{request.horizon_months} months, final capital {statistics['final_capital']:.2f}"
        )
        return ProjectionResult(
            request=request,
            existing_receivables=existing,
            potential_installments=result.all_issued_installments,
            projection=result.projection,
            statistics=statistics,
            issued_loans=result.issued_loans,
        )

    installments = generate_installments(request.loan_terms, today)
    projection = combine(existing, installments, request.horizon_months, today)
    statistics = single_loan_statistics(request.loan_amount, installments, request.horizon_months)
    logger.info(
        f"Single-loan projection from {today:%Y-%m}: {len(installments)} installments, "
        f"total interest {statistics['total_interest']:.2f}"
    )
    return ProjectionResult(
        request=request,
        existing_receivables=existing,
        potential_installments=installments,
        projection=projection,
        statistics=statistics,
    )
