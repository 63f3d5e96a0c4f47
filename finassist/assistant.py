"""
Financial Assistant

The entry points the insights dashboard calls: cash-flow forecast, anomaly
detection and insights, plus recurring-expense detection and the extended
anomaly scans.

DESIGN DECISION: The assistant is a plain object, constructed once and
passed to whoever needs it. It holds only its settings and a clock; no
state survives between calls.

The clock is only read when a caller does not pass `now`. Passing a fixed
`now` makes every result reproducible.
"""

from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from typing import Optional, Union

from finassist.analysis import (
    detect_anomalies,
    detect_extended_anomalies,
    detect_recurring_expenses,
    generate_cash_flow_forecast,
    generate_insights,
)
from finassist.config import AnalysisSettings, get_settings
from finassist.models.analysis import (
    Anomaly,
    ForecastMethod,
    ForecastPoint,
    Insight,
    RecurringExpense,
)
from finassist.models.transaction import Transaction


def system_clock() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


class FinancialAssistant:
    """
    Rule-based financial analysis over a business's transactions.

    GUARANTEES:
    - Never modifies the transactions it is given
    - Same transactions + same `now` -> same results
    - Never raises on well-formed input, including an empty list
    """

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        clock: Callable[[], datetime] = system_clock,
    ):
        """
        Initialize the assistant.

        Args:
            settings: Analysis thresholds. Defaults to the configured settings.
            clock: Source of "now" when a call does not pass one.
        """
        self._settings = settings or get_settings().analysis
        self._clock = clock

    @property
    def settings(self) -> AnalysisSettings:
        return self._settings

    def now(self) -> datetime:
        return self._clock()

    def generate_cash_flow_forecast(
        self,
        transactions: Sequence[Transaction],
        forecast_days: Optional[int] = None,
        now: Optional[datetime] = None,
        method: Union[ForecastMethod, str] = ForecastMethod.DAILY_PATTERN,
    ) -> list[ForecastPoint]:
        """One forecast point per day, starting today."""
        if forecast_days is None:
            forecast_days = self._settings.default_forecast_days
        now = now or self._clock()
        return generate_cash_flow_forecast(
            transactions, forecast_days, now.date(), self._settings, method
        )

    def detect_anomalies(
        self,
        transactions: Sequence[Transaction],
        now: Optional[datetime] = None,
    ) -> list[Anomaly]:
        """Anomalies sorted by severity, highest first."""
        return detect_anomalies(transactions, now or self._clock(), self._settings)

    def detect_extended_anomalies(
        self,
        transactions: Sequence[Transaction],
        now: Optional[datetime] = None,
    ) -> list[Anomaly]:
        """Income spikes, card testing and unusual timing, highest severity first."""
        return detect_extended_anomalies(transactions, now or self._clock(), self._settings)

    def generate_insights(
        self,
        transactions: Sequence[Transaction],
        now: Optional[datetime] = None,
    ) -> list[Insight]:
        """Insights sorted by priority, highest first."""
        return generate_insights(transactions, now or self._clock(), self._settings)

    def detect_recurring_expenses(
        self,
        transactions: Sequence[Transaction],
    ) -> list[RecurringExpense]:
        """Expenses that repeat monthly for a consistent amount."""
        return detect_recurring_expenses(transactions, self._settings)
