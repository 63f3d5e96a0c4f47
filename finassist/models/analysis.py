"""
Analysis Result Models

These are the records the assistant hands to the presentation layer:
forecast points, anomalies, insights and the supporting aggregates.

DESIGN DECISION: Results are computed fresh on every call and never
persisted by this package. They serialize to the camelCase names the
dashboard already renders (model_dump(by_alias=True)), while Python code
uses snake_case attributes.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from finassist.models.transaction import Transaction


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Confidence(str, Enum):
    """
    Coarse reliability label for a forecast point.

    This is a rule-based label driven by data volume and horizon distance,
    not a statistical confidence interval.
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnomalyType(str, Enum):
    """Kinds of anomaly the detector can raise."""
    DUPLICATE = "duplicate"
    UNUSUAL_SPENDING = "unusual_spending"
    LARGE_TRANSACTION = "large_transaction"
    CATEGORY_SPIKE = "category_spike"
    # Raised only by the extended scans
    INCOME_SPIKE = "income_spike"
    CARD_TESTING = "card_testing"
    UNUSUAL_TIMING = "unusual_timing"


class ForecastMethod(str, Enum):
    """
    How each future day's income and expenses are estimated.

    DAILY_PATTERN is the dashboard default. The others reshape the same
    per-day estimate:
    - WEIGHTED blends it with the recent daily rate, scaled by the
      calendar month's seasonal factor
    - EXPONENTIAL smooths it toward the following day's estimate
    - MOVING_AVERAGE averages the estimates of the preceding days
    """
    DAILY_PATTERN = "daily_pattern"
    WEIGHTED = "weighted"
    EXPONENTIAL = "exponential"
    MOVING_AVERAGE = "moving_average"


class Severity(str, Enum):
    """Anomaly severity. Used for ordering only."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class InsightType(str, Enum):
    """Kinds of insight the generator can produce."""
    TREND = "trend"
    RECOMMENDATION = "recommendation"
    WARNING = "warning"
    OPPORTUNITY = "opportunity"


class Impact(str, Enum):
    """Whether an insight is good news, bad news or neither."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Priority(str, Enum):
    """Insight priority. Used for ordering only."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


# Ordinal ranks used to sort results, highest first
SEVERITY_RANK = {Severity.HIGH: 3, Severity.MEDIUM: 2, Severity.LOW: 1}
PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}
CONFIDENCE_RANK = {Confidence.HIGH: 3, Confidence.MEDIUM: 2, Confidence.LOW: 1}


class _ResultModel(BaseModel):
    """Base for result records: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# =============================================================================
# HISTORY
# =============================================================================

class HistoricalData(_ResultModel):
    """
    Income and expense statistics over the trailing history window.

    Keys of the daily maps are weekday indexes (Monday = 0 ... Sunday = 6).
    Keys of the monthly maps are days of the month (1-31).
    """

    daily_income: dict[int, list[Decimal]] = Field(default_factory=dict)
    daily_expenses: dict[int, list[Decimal]] = Field(default_factory=dict)
    monthly_income: dict[int, list[Decimal]] = Field(default_factory=dict)
    monthly_expenses: dict[int, list[Decimal]] = Field(default_factory=dict)

    # Mean transaction amount in the window, not a per-day rate
    avg_daily_income: Decimal = Decimal("0")
    avg_daily_expenses: Decimal = Decimal("0")

    total_transactions: int = Field(default=0, ge=0)


# =============================================================================
# FORECAST
# =============================================================================

class ForecastPoint(_ResultModel):
    """Projected cash position for one calendar day."""

    date: dt.date
    projected_balance: Decimal
    projected_income: Decimal
    projected_expenses: Decimal
    confidence: Confidence


class ForecastSummary(_ResultModel):
    """
    Totals over a forecast horizon, as shown above the forecast table.

    confidence is the weakest confidence of any point in the horizon.
    """

    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    days: int = Field(default=0, ge=0)
    total_income: Decimal = Decimal("0.00")
    total_expenses: Decimal = Decimal("0.00")
    net_cash_flow: Decimal = Decimal("0.00")
    ending_balance: Decimal = Decimal("0.00")
    confidence: Confidence = Confidence.LOW


class LinearTrend(_ResultModel):
    """Least-squares trend over an evenly spaced series."""

    slope: float = 0.0
    r_squared: float = 0.0
    direction: TrendDirection = TrendDirection.STABLE


# =============================================================================
# ANOMALIES & INSIGHTS
# =============================================================================

class Anomaly(_ResultModel):
    """
    Something in the books that deserves a second look.

    transactions is the subset of the input that triggered the anomaly.
    """

    id: str
    type: AnomalyType
    severity: Severity
    title: str
    description: str
    transactions: list[Transaction] = Field(default_factory=list)
    suggested_action: Optional[str] = None
    detected_at: dt.datetime


class Insight(_ResultModel):
    """A finding about the business's finances, optionally with next steps."""

    id: str
    type: InsightType
    title: str
    description: str
    impact: Impact
    priority: Priority
    actionable: bool = True
    suggested_actions: list[str] = Field(default_factory=list)
    created_at: dt.datetime


class RecurringExpense(_ResultModel):
    """An expense that repeats roughly monthly for a consistent amount."""

    name: str
    count: int = Field(ge=0)
    average_amount: Decimal
    average_interval_days: float
    last_date: dt.date
    transactions: list[Transaction] = Field(default_factory=list)


# =============================================================================
# DASHBOARD REPORT
# =============================================================================

class FinancialReport(_ResultModel):
    """Everything the insights dashboard renders after one refresh."""

    correlation_id: str
    generated_at: dt.datetime
    transaction_count: int = Field(ge=0)
    forecast_days: int = Field(ge=0)
    forecast_method: ForecastMethod = ForecastMethod.DAILY_PATTERN

    forecast: list[ForecastPoint] = Field(default_factory=list)
    forecast_summary: ForecastSummary = Field(default_factory=ForecastSummary)
    balance_trend: LinearTrend = Field(default_factory=LinearTrend)
    anomalies: list[Anomaly] = Field(default_factory=list)
    insights: list[Insight] = Field(default_factory=list)
    recurring_expenses: list[RecurringExpense] = Field(default_factory=list)

    @property
    def high_severity_anomaly_count(self) -> int:
        """Count anomalies that need immediate attention."""
        return sum(1 for a in self.anomalies if a.severity == Severity.HIGH)
