"""
Cash-Flow Forecast Generator

Projects the running balance forward one calendar day at a time, starting
today. Each day's income and expenses are estimated from the trailing
history:

1. mean of the amounts seen on the same weekday, else
2. mean of the amounts seen on the same day of the month, else
3. the window's mean transaction amount divided by 30.

The third step divides a mean *transaction* amount by a day count, so it is
not a true daily rate. It is kept as-is because the dashboard's numbers have
always been computed this way.

That estimate is the DAILY_PATTERN method. The other ForecastMethod values
reshape the same per-day estimate; the starting balance and the confidence
tiers do not depend on the method.
"""

from collections.abc import Callable, Sequence
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Union

import structlog

from finassist.analysis.historical import aggregate_history, recent_daily_rates, seasonal_factors
from finassist.analysis.stats import ZERO, current_balance, mean, round_currency
from finassist.config.settings import AnalysisSettings
from finassist.models.analysis import (
    CONFIDENCE_RANK,
    Confidence,
    ForecastMethod,
    ForecastPoint,
    ForecastSummary,
    HistoricalData,
)
from finassist.models.transaction import Transaction

logger = structlog.get_logger(__name__)

# Maps a day to its estimated (income, expenses)
DailyEstimate = Callable[[date], tuple[Decimal, Decimal]]


def _project(
    by_weekday: dict[int, list[Decimal]],
    by_day_of_month: dict[int, list[Decimal]],
    fallback_mean: Decimal,
    day: date,
    settings: AnalysisSettings,
) -> Decimal:
    weekday_amounts = by_weekday.get(day.weekday())
    if weekday_amounts:
        return mean(weekday_amounts)

    day_of_month_amounts = by_day_of_month.get(day.day)
    if day_of_month_amounts:
        return mean(day_of_month_amounts)

    return fallback_mean / settings.fallback_day_divisor


def _daily_pattern(history: HistoricalData, settings: AnalysisSettings) -> DailyEstimate:
    def estimate(day: date) -> tuple[Decimal, Decimal]:
        income = _project(
            history.daily_income,
            history.monthly_income,
            history.avg_daily_income,
            day,
            settings,
        )
        expenses = _project(
            history.daily_expenses,
            history.monthly_expenses,
            history.avg_daily_expenses,
            day,
            settings,
        )
        return income, expenses

    return estimate


def _weighted(
    base: DailyEstimate,
    transactions: Sequence[Transaction],
    today: date,
    settings: AnalysisSettings,
) -> DailyEstimate:
    factors = seasonal_factors(transactions)
    recent_income, recent_expenses = recent_daily_rates(
        transactions, today, settings.history_window_days
    )
    weight = settings.forecast_trend_weight

    def estimate(day: date) -> tuple[Decimal, Decimal]:
        income, expenses = base(day)
        factor = factors[day.month]
        return (
            income * (1 - weight) + recent_income * weight * factor,
            expenses * (1 - weight) + recent_expenses * weight * factor,
        )

    return estimate


def _exponential(base: DailyEstimate, settings: AnalysisSettings) -> DailyEstimate:
    alpha = settings.forecast_smoothing_alpha

    def estimate(day: date) -> tuple[Decimal, Decimal]:
        income, expenses = base(day)
        next_income, next_expenses = base(day + timedelta(days=1))
        return (
            alpha * income + (1 - alpha) * next_income,
            alpha * expenses + (1 - alpha) * next_expenses,
        )

    return estimate


def _moving_average(base: DailyEstimate, settings: AnalysisSettings) -> DailyEstimate:
    window = settings.forecast_moving_average_days

    def estimate(day: date) -> tuple[Decimal, Decimal]:
        previous = [base(day - timedelta(days=n)) for n in range(window, 0, -1)]
        return (
            mean([income for income, _ in previous]),
            mean([expenses for _, expenses in previous]),
        )

    return estimate


def _estimator(
    method: ForecastMethod,
    transactions: Sequence[Transaction],
    history: HistoricalData,
    today: date,
    settings: AnalysisSettings,
) -> DailyEstimate:
    base = _daily_pattern(history, settings)
    if method == ForecastMethod.WEIGHTED:
        return _weighted(base, transactions, today, settings)
    if method == ForecastMethod.EXPONENTIAL:
        return _exponential(base, settings)
    if method == ForecastMethod.MOVING_AVERAGE:
        return _moving_average(base, settings)
    return base


def _confidence(total_transactions: int, offset: int, settings: AnalysisSettings) -> Confidence:
    if (
        total_transactions > settings.high_confidence_min_transactions
        and offset < settings.high_confidence_horizon_days
    ):
        return Confidence.HIGH
    if (
        total_transactions > settings.medium_confidence_min_transactions
        and offset < settings.medium_confidence_horizon_days
    ):
        return Confidence.MEDIUM
    return Confidence.LOW


def generate_cash_flow_forecast(
    transactions: Sequence[Transaction],
    forecast_days: int,
    today: date,
    settings: Optional[AnalysisSettings] = None,
    method: Union[ForecastMethod, str] = ForecastMethod.DAILY_PATTERN,
) -> list[ForecastPoint]:
    """
    Project the balance for `forecast_days` days, the first point being today.

    The starting balance is the balance over ALL transactions; only the
    per-day estimates use the trailing window. The running balance is kept
    at full precision and every emitted amount is rounded to cents.

    Raises:
        ValueError: If `method` is not a ForecastMethod value.
    """
    settings = settings or AnalysisSettings()
    method = ForecastMethod(method)

    balance = current_balance(transactions)
    history: HistoricalData = aggregate_history(
        transactions, today, settings.history_window_days
    )
    estimate = _estimator(method, transactions, history, today, settings)

    points = []
    for offset in range(max(forecast_days, 0)):
        day = today + timedelta(days=offset)

        income, expenses = estimate(day)
        balance += income - expenses

        points.append(ForecastPoint(
            date=day,
            projected_balance=round_currency(balance),
            projected_income=round_currency(income),
            projected_expenses=round_currency(expenses),
            confidence=_confidence(history.total_transactions, offset, settings),
        ))

    logger.debug(
        "forecast_generated",
        days=len(points),
        method=method.value,
        window_transactions=history.total_transactions,
    )
    return points


def summarize_forecast(points: Sequence[ForecastPoint]) -> ForecastSummary:
    """
    Totals for the forecast header: projected income, expenses, net cash
    flow and the balance on the last day.
    """
    if not points:
        return ForecastSummary()

    total_income = sum((p.projected_income for p in points), ZERO)
    total_expenses = sum((p.projected_expenses for p in points), ZERO)
    weakest = min((p.confidence for p in points), key=lambda c: CONFIDENCE_RANK[c])

    return ForecastSummary(
        start_date=points[0].date,
        end_date=points[-1].date,
        days=len(points),
        total_income=round_currency(total_income),
        total_expenses=round_currency(total_expenses),
        net_cash_flow=round_currency(total_income - total_expenses),
        ending_balance=points[-1].projected_balance,
        confidence=weakest,
    )
