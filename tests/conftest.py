"""
Shared fixtures.

Every test runs against a fixed reference time so results are
reproducible: Saturday 15 June 2024, noon UTC.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from itertools import count

import pytest

from finassist.config import AnalysisSettings
from finassist.models import Transaction, TransactionType

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def settings():
    return AnalysisSettings()


@pytest.fixture
def txn():
    """
    Factory for transactions.

    `day` is either a date or an offset in days before TODAY.
    """
    ids = count(1)

    def make(
        type="expense",
        amount="10.00",
        day=0,
        category="General",
        description="",
        id=None,
    ):
        if not isinstance(day, date):
            day = TODAY - timedelta(days=day)
        return Transaction(
            id=id or f"t{next(ids)}",
            type=TransactionType(type),
            amount=Decimal(amount),
            date=day,
            category=category,
            description=description,
        )

    return make
