"""
Analysis package.

Pure functions over an immutable transaction list. Nothing in here reads
the clock, touches storage or keeps state between calls.
"""

from finassist.analysis.anomalies import detect_anomalies, detect_extended_anomalies
from finassist.analysis.forecast import generate_cash_flow_forecast, summarize_forecast
from finassist.analysis.historical import aggregate_history, seasonal_factors
from finassist.analysis.insights import generate_insights
from finassist.analysis.recurring import detect_recurring_expenses
from finassist.analysis.stats import linear_trend

__all__ = [
    "aggregate_history",
    "detect_anomalies",
    "detect_extended_anomalies",
    "detect_recurring_expenses",
    "generate_cash_flow_forecast",
    "generate_insights",
    "linear_trend",
    "seasonal_factors",
    "summarize_forecast",
]
