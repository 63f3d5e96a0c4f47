"""
Numeric helpers shared by the analyses.

All money arithmetic stays in Decimal so that rounding to cents happens
exactly once, when a value is placed into a result.
"""

import statistics
from collections.abc import Callable, Iterable, Sequence
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

from finassist.models.analysis import LinearTrend, TrendDirection
from finassist.models.transaction import Transaction

T = TypeVar("T")

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def mean(values: Sequence[Decimal]) -> Decimal:
    """Arithmetic mean; zero for an empty sequence."""
    if not values:
        return ZERO
    return statistics.mean(values)


def population_stddev(values: Sequence[Decimal]) -> Decimal:
    """Population standard deviation; zero when fewer than two values."""
    if len(values) < 2:
        return ZERO
    return statistics.pstdev(values)


def round_currency(value: Decimal) -> Decimal:
    """Round a money amount to cents."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_currency(value: Decimal, symbol: str = "$") -> str:
    """Render an amount for titles and descriptions, e.g. -$1,250.00."""
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(round_currency(value)):,.2f}"


def current_balance(transactions: Iterable[Transaction]) -> Decimal:
    """Sum of income minus sum of expenses over every transaction."""
    return sum((t.signed_amount for t in transactions), ZERO)


def total_amount(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), ZERO)


def slugify(value: str) -> str:
    """Lowercase, hyphen-separated id fragment; blank values become "uncategorized"."""
    return "-".join(value.lower().split()) or "uncategorized"


def in_window(day: date, start: date, end: date) -> bool:
    """Inclusive date range check."""
    return start <= day <= end


def trailing_window(today: date, days: int) -> tuple[date, date]:
    """The window [today - days, today]."""
    return today - timedelta(days=days), today


def group_by(items: Iterable[T], key: Callable[[T], object]) -> dict:
    """Group items by key, preserving first-seen key order and item order."""
    groups: dict = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def sum_by_category(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Total amount per category, in first-seen category order."""
    totals: dict[str, Decimal] = {}
    for t in transactions:
        totals[t.category] = totals.get(t.category, ZERO) + t.amount
    return totals


def linear_trend(values: Sequence[float], stable_slope: float = 0.01) -> LinearTrend:
    """
    Least-squares trend of an evenly spaced series.

    The slope is per step. Series shorter than two points, or flat series,
    are reported as stable with r_squared 0.
    """
    if len(values) < 2:
        return LinearTrend()

    xs = list(range(len(values)))
    ys = [float(v) for v in values]
    slope, _ = statistics.linear_regression(xs, ys)

    try:
        r_squared = statistics.correlation(xs, ys) ** 2
    except statistics.StatisticsError:
        # Constant series have no defined correlation
        r_squared = 0.0

    direction = TrendDirection.STABLE
    if abs(slope) > stable_slope:
        direction = TrendDirection.UP if slope > 0 else TrendDirection.DOWN

    return LinearTrend(
        slope=round(slope, 4),
        r_squared=round(r_squared, 4),
        direction=direction,
    )
