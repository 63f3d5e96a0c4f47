"""
Historical Aggregator

Reduces the transaction list to per-weekday and per-day-of-month income and
expense statistics over the trailing history window. The forecast generator
projects each future day from these statistics.

The weighted forecast also needs the recent daily rates and a seasonal
factor per calendar month, both computed here.
"""

from collections.abc import Iterable, Sequence
from datetime import date
from decimal import Decimal

import structlog

from finassist.analysis.stats import ZERO, in_window, mean, total_amount, trailing_window
from finassist.models.analysis import HistoricalData
from finassist.models.transaction import Transaction

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_DAYS = 30
ONE = Decimal("1")


def aggregate_history(
    transactions: Iterable[Transaction],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> HistoricalData:
    """
    Aggregate transactions dated within [today - window_days, today].

    avg_daily_income / avg_daily_expenses are the mean transaction amount of
    each kind in the window. They are not divided by the number of days.
    """
    start, end = trailing_window(today, window_days)
    history = HistoricalData()

    income_amounts = []
    expense_amounts = []

    for t in transactions:
        if not in_window(t.date, start, end):
            continue

        weekday = t.date.weekday()
        day_of_month = t.date.day

        if t.is_income:
            history.daily_income.setdefault(weekday, []).append(t.amount)
            history.monthly_income.setdefault(day_of_month, []).append(t.amount)
            income_amounts.append(t.amount)
        else:
            history.daily_expenses.setdefault(weekday, []).append(t.amount)
            history.monthly_expenses.setdefault(day_of_month, []).append(t.amount)
            expense_amounts.append(t.amount)

    history.avg_daily_income = mean(income_amounts)
    history.avg_daily_expenses = mean(expense_amounts)
    history.total_transactions = len(income_amounts) + len(expense_amounts)

    logger.debug(
        "history_aggregated",
        window_start=start.isoformat(),
        window_end=end.isoformat(),
        total_transactions=history.total_transactions,
    )
    return history


def recent_daily_rates(
    transactions: Iterable[Transaction],
    today: date,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> tuple[Decimal, Decimal]:
    """Income and expenses per day over [today - window_days, today]."""
    start, end = trailing_window(today, window_days)
    recent = [t for t in transactions if in_window(t.date, start, end)]

    income = total_amount(t for t in recent if t.is_income)
    expenses = total_amount(t for t in recent if t.is_expense)
    return income / window_days, expenses / window_days


def seasonal_factors(transactions: Sequence[Transaction]) -> dict[int, Decimal]:
    """
    Seasonal factor per calendar month (1-12), over every transaction.

    A month's income is divided by the number of transactions (of either
    kind) in that month, then compared with the mean of those ratios over
    the months that have data. Months without data, or books without any
    income, get a neutral factor of 1.
    """
    income: dict[int, Decimal] = {}
    counts: dict[int, int] = {}
    for t in transactions:
        month = t.date.month
        counts[month] = counts.get(month, 0) + 1
        if t.is_income:
            income[month] = income.get(month, ZERO) + t.amount

    per_transaction = {month: income.get(month, ZERO) / n for month, n in counts.items()}
    overall = mean(list(per_transaction.values()))
    if overall == 0:
        return {month: ONE for month in range(1, 13)}

    return {
        month: per_transaction[month] / overall if month in per_transaction else ONE
        for month in range(1, 13)
    }
