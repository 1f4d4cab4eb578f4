import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

# Make the project root importable without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from loan_adviser.data_models import LoanTerms, PaymentFrequency  # noqa: E402


@pytest.fixture
def today():
    return date(2025, 1, 10)


@pytest.fixture
def default_terms():
    """50k at 1.5% per month over 12 months, paid monthly."""
    return LoanTerms(
        principal=Decimal("50000"),
        rate=Decimal("1.5"),
        term=12,
        frequency=PaymentFrequency.MONTHLY,
    )
