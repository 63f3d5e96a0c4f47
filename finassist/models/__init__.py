"""
Data Models Package

This package contains all Pydantic models used by the Financial Assistant.
All data flowing in and out of the analyses must conform to these schemas.
"""

from finassist.models.transaction import (
    Transaction,
    TransactionType,
)
from finassist.models.analysis import (
    CONFIDENCE_RANK,
    PRIORITY_RANK,
    SEVERITY_RANK,
    Anomaly,
    AnomalyType,
    Confidence,
    FinancialReport,
    ForecastMethod,
    ForecastPoint,
    ForecastSummary,
    HistoricalData,
    Impact,
    Insight,
    InsightType,
    LinearTrend,
    Priority,
    RecurringExpense,
    Severity,
    TrendDirection,
)
from finassist.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "Transaction",
    "TransactionType",
    # Analysis models
    "CONFIDENCE_RANK",
    "PRIORITY_RANK",
    "SEVERITY_RANK",
    "Anomaly",
    "AnomalyType",
    "Confidence",
    "FinancialReport",
    "ForecastMethod",
    "ForecastPoint",
    "ForecastSummary",
    "HistoricalData",
    "Impact",
    "Insight",
    "InsightType",
    "LinearTrend",
    "Priority",
    "RecurringExpense",
    "Severity",
    "TrendDirection",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
