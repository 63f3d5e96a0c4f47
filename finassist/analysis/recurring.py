"""
Recurring Expense Detection

Spots subscriptions and standing payments: expenses with the same
description that come back roughly once a month for roughly the same amount.
"""

import statistics
from collections.abc import Sequence
from typing import Optional

from finassist.analysis.stats import group_by, mean, population_stddev, round_currency
from finassist.config.settings import AnalysisSettings
from finassist.models.analysis import RecurringExpense
from finassist.models.transaction import Transaction


def _is_monthly(intervals: list[int], settings: AnalysisSettings) -> bool:
    average = statistics.mean(intervals)
    if not settings.recurring_min_interval_days < average < settings.recurring_max_interval_days:
        return False
    spread = statistics.pstdev(intervals)
    return (
        spread < settings.recurring_max_interval_stddev_days
        or spread / average < settings.recurring_max_interval_variation
    )


def detect_recurring_expenses(
    transactions: Sequence[Transaction],
    settings: Optional[AnalysisSettings] = None,
) -> list[RecurringExpense]:
    """
    Group expenses by description and keep the groups that look monthly.

    A group qualifies when it has enough members, the mean gap between
    consecutive payments is between the configured bounds with a small
    spread, and the amounts stay within the configured tolerance of their
    mean. Results are ordered by average amount, largest first.
    """
    settings = settings or AnalysisSettings()

    expenses = [t for t in transactions if t.is_expense]
    groups = group_by(expenses, lambda t: t.description or "Unknown")

    found = []
    for name, group in groups.items():
        if len(group) < settings.recurring_min_occurrences:
            continue

        group = sorted(group, key=lambda t: t.date)
        intervals = [
            (later.date - earlier.date).days
            for earlier, later in zip(group, group[1:])
        ]
        if not _is_monthly(intervals, settings):
            continue

        amounts = [t.amount for t in group]
        average_amount = mean(amounts)
        if population_stddev(amounts) >= average_amount * settings.recurring_amount_tolerance:
            continue

        found.append(RecurringExpense(
            name=name,
            count=len(group),
            average_amount=round_currency(average_amount),
            average_interval_days=round(float(statistics.mean(intervals)), 1),
            last_date=group[-1].date,
            transactions=group,
        ))

    return sorted(found, key=lambda r: r.average_amount, reverse=True)
