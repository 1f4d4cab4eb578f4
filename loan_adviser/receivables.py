"""Receivables aggregation.

Existing receivables come from one of two places: the unpaid future
installments recorded in the payment ledger, or the hypothetical entries a
user declares by hand (one-off and recurring). Whatever their origin they are
folded into the same month-keyed mapping of totals.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .data_models import ManualReceivable, ProjectionRequest, RecurrenceFrequency, RecurringReceivable
from .utils import add_months, decimal_from_str, month_key, parse_year_month

logger = logging.getLogger(__name__)


def aggregate(items: Iterable[Any]) -> Dict[str, Decimal]:
    """Sum ``amount`` per ``month_key`` over installment-shaped records.

    The result does not depend on the order of ``items``; keys are returned
    in chronological order.
    """
    totals: Dict[str, Decimal] = {}
    for item in items:
        totals[item.month_key] = totals.get(item.month_key, Decimal("0")) + item.amount
    return dict(sorted(totals.items()))


def expand_recurring(recurring: Iterable[RecurringReceivable], horizon_months: int) -> List[ManualReceivable]:
    """Expand recurring rules into one entry per qualifying month.

    Month ``i`` (0-based, counted from the rule's start month) qualifies when
    ``i`` is a multiple of the rule's step, so the start month itself always
    receives the first occurrence.
    """
    entries: List[ManualReceivable] = []
    for rule in recurring:
        start = parse_year_month(rule.start_month_key)
        step = rule.frequency.step
        for i in range(horizon_months):
            if i % step != 0:
                continue
            entries.append(
                ManualReceivable(
                    month_key=month_key(add_months(start, i)),
                    amount=rule.amount,
                    description=rule.description,
                )
            )
    return entries


def _load_batch(raw: Any) -> List[Any]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, (str, bytes)):
        raw = json.loads(raw)
    if not isinstance(raw, list):
        raise ValueError(f"Expected a list of receivables, got {type(raw).__name__}")
    return raw


def _manual_from_dict(entry: Any) -> ManualReceivable:
    if isinstance(entry, ManualReceivable):
        return entry
    key = entry.get("monthKey", entry.get("month_key"))
    parse_year_month(key)
    return ManualReceivable(
        month_key=key,
        amount=decimal_from_str(entry["amount"]),
        description=str(entry.get("description", "") or ""),
    )


def _recurring_from_dict(entry: Any) -> RecurringReceivable:
    if isinstance(entry, RecurringReceivable):
        return entry
    key = entry.get("startMonthKey", entry.get("start_month_key"))
    parse_year_month(key)
    return RecurringReceivable(
        start_month_key=key,
        amount=decimal_from_str(entry["amount"]),
        frequency=RecurrenceFrequency(str(entry.get("frequency", "monthly")).lower()),
        description=str(entry.get("description", "") or ""),
    )


def parse_manual_receivables(raw: Any) -> List[ManualReceivable]:
    """Parse a batch of one-off receivables (JSON text or a list).

    A malformed batch is logged and discarded as a whole.
    """
    try:
        return [_manual_from_dict(entry) for entry in _load_batch(raw)]
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.warning(f"Ignoring malformed manual receivables: {exc}")
        return []


def parse_recurring_receivables(raw: Any) -> List[RecurringReceivable]:
    """Parse a batch of recurring receivables (JSON text or a list).

    A malformed batch is logged and discarded as a whole.
    """
    try:
        return [_recurring_from_dict(entry) for entry in _load_batch(raw)]
    except (ValueError, TypeError, KeyError, AttributeError) as exc:
        logger.warning(f"Ignoring malformed recurring receivables: {exc}")
        return []


def build_existing_receivables(
    request: ProjectionRequest,
    scheduled: Optional[Iterable[Any]] = None,
) -> Dict[str, Decimal]:
    """Return the month map of receivables the projection starts from.

    In manual mode the user's one-off and expanded recurring entries are used
    and ``scheduled`` is ignored. Otherwise ``scheduled`` must hold the unpaid
    installments due from today on, as read from the payment ledger.
    """
    if request.use_manual_receivables:
        entries = list(request.manual_receivables)
        entries.extend(expand_recurring(request.recurring_receivables, request.horizon_months))
        return aggregate(entries)
    return aggregate(scheduled or [])
