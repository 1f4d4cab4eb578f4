"""Defaults and environment configuration."""

from __future__ import annotations

import os
from decimal import Decimal

from .data_models import PaymentFrequency

DEFAULT_LOAN_AMOUNT = Decimal("50000")
DEFAULT_INTEREST_RATE = Decimal("1.5")  # percent per month
DEFAULT_TERM_MONTHS = 12
DEFAULT_PAYMENT_SCHEME = PaymentFrequency.MONTHLY

# Projection horizons when none is requested
DEFAULT_ROLLING_HORIZON_MONTHS = 12
DEFAULT_SINGLE_LOAN_HORIZON_MONTHS = 24
# Used by the engine when handed a non-positive horizon
FALLBACK_HORIZON_MONTHS = 12

CONFIGURATION_VERSION = "1.0"

DATABASE_URL = os.environ.get("LOAN_ADVISER_DATABASE_URL", "sqlite:///loan_adviser_ledger.sqlite3")
LOG_LEVEL = os.environ.get("LOAN_ADVISER_LOG_LEVEL", "WARNING")
