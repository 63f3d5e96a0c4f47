"""
Insight Generator

Four independent analyses, each producing at most one insight:

1. Revenue trend - last 30 days of income against the 30 days before
2. Top spending category - where most of the money has gone
3. Low cash balance - the books show less cash than the safety threshold
4. Deductible expenses - spend in categories that usually reduce tax

Insights are sorted by priority, highest first (stable within a priority).
"""

from collections.abc import Sequence
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

import structlog

from finassist.analysis.stats import (
    ZERO,
    current_balance,
    format_currency,
    slugify,
    sum_by_category,
    total_amount,
)
from finassist.config.settings import AnalysisSettings
from finassist.models.analysis import (
    PRIORITY_RANK,
    Impact,
    Insight,
    InsightType,
    Priority,
)
from finassist.models.transaction import Transaction

logger = structlog.get_logger(__name__)


def revenue_growth(
    transactions: Sequence[Transaction],
    now: datetime,
    window_days: int = 30,
) -> tuple[Decimal, Decimal, Optional[Decimal]]:
    """
    Income in the recent window, in the window before it, and the growth
    percentage between them (None when the earlier window had no income).

    Recent window: [today - window_days, today].
    Prior window:  [today - 2 * window_days, today - window_days).
    """
    today = now.date()
    recent_start = today - timedelta(days=window_days)
    prior_start = today - timedelta(days=2 * window_days)

    income = [t for t in transactions if t.is_income]
    recent = total_amount(t for t in income if recent_start <= t.date <= today)
    prior = total_amount(t for t in income if prior_start <= t.date < recent_start)

    if prior == 0:
        return recent, prior, None
    return recent, prior, (recent - prior) / prior * 100


def revenue_trend_insight(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Insight]:
    recent, prior, growth = revenue_growth(transactions, now, settings.history_window_days)
    if growth is None or abs(growth) < settings.trend_stable_threshold_pct:
        return []

    symbol = settings.currency_symbol
    days = settings.history_window_days

    if growth > 0:
        return [Insight(
            id="insight-revenue-trend",
            type=InsightType.TREND,
            title="Revenue is increasing",
            description=(
                f"Income over the last {days} days was {format_currency(recent, symbol)}, "
                f"up {abs(growth):.1f}% from {format_currency(prior, symbol)} "
                f"in the previous {days} days."
            ),
            impact=Impact.POSITIVE,
            priority=Priority.HIGH,
            actionable=True,
            suggested_actions=[
                "Identify which clients or services drove the growth.",
                "Consider setting aside part of the extra income for taxes.",
            ],
            created_at=now,
        )]

    return [Insight(
        id="insight-revenue-trend",
        type=InsightType.TREND,
        title="Revenue is decreasing",
        description=(
            f"Income over the last {days} days was {format_currency(recent, symbol)}, "
            f"down {abs(growth):.1f}% from {format_currency(prior, symbol)} "
            f"in the previous {days} days."
        ),
        impact=Impact.NEGATIVE,
        priority=Priority.HIGH,
        actionable=True,
        suggested_actions=[
            "Follow up on unpaid invoices.",
            "Reach out to clients you have not billed recently.",
        ],
        created_at=now,
    )]


def top_spending_insight(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Insight]:
    totals = sum_by_category(t for t in transactions if t.is_expense)
    if not totals:
        return []

    category, total = max(totals.items(), key=lambda item: item[1])
    if total <= 0:
        return []

    return [Insight(
        id=f"insight-top-spending-{slugify(category)}",
        type=InsightType.RECOMMENDATION,
        title=f"Top spending category: {category}",
        description=(
            f"{category} is your largest expense category at "
            f"{format_currency(total, settings.currency_symbol)} in total."
        ),
        impact=Impact.NEUTRAL,
        priority=Priority.MEDIUM,
        actionable=True,
        suggested_actions=[
            f"Review {category} expenses for savings opportunities.",
            "Compare suppliers or renegotiate recurring costs.",
        ],
        created_at=now,
    )]


def low_balance_insight(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Insight]:
    balance = current_balance(transactions)
    if balance >= settings.low_balance_threshold:
        return []

    symbol = settings.currency_symbol
    return [Insight(
        id="insight-low-cash-balance",
        type=InsightType.WARNING,
        title="Low cash balance",
        description=(
            f"Your cash balance is {format_currency(balance, symbol)}, below the "
            f"{format_currency(settings.low_balance_threshold, symbol)} safety threshold."
        ),
        impact=Impact.NEGATIVE,
        priority=Priority.HIGH,
        actionable=True,
        suggested_actions=[
            "Chase outstanding invoices.",
            "Postpone non-essential purchases.",
        ],
        created_at=now,
    )]


def deductible_expenses_insight(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: AnalysisSettings,
) -> list[Insight]:
    deductible = settings.deductible_categories_set
    total = sum(
        (t.amount for t in transactions if t.is_expense and t.category in deductible),
        ZERO,
    )
    if total <= 0:
        return []

    return [Insight(
        id="insight-deductible-expenses",
        type=InsightType.OPPORTUNITY,
        title="Potential tax deductions",
        description=(
            f"You have {format_currency(total, settings.currency_symbol)} in expenses "
            f"that are commonly tax-deductible ({', '.join(sorted(deductible))})."
        ),
        impact=Impact.POSITIVE,
        priority=Priority.MEDIUM,
        actionable=True,
        suggested_actions=[
            "Keep receipts for these expenses.",
            "Review them with your accountant before filing.",
        ],
        created_at=now,
    )]


ANALYSES = (
    revenue_trend_insight,
    top_spending_insight,
    low_balance_insight,
    deductible_expenses_insight,
)


def generate_insights(
    transactions: Sequence[Transaction],
    now: datetime,
    settings: Optional[AnalysisSettings] = None,
) -> list[Insight]:
    """Run every analysis and return the insights sorted by priority, highest first."""
    settings = settings or AnalysisSettings()

    insights: list[Insight] = []
    for analysis in ANALYSES:
        insights.extend(analysis(transactions, now, settings))

    logger.debug(
        "insights_generated",
        transactions=len(transactions),
        insights=len(insights),
    )
    return sorted(insights, key=lambda i: -PRIORITY_RANK[i.priority])
