"""
Audit Models for the Financial Assistant

Every analysis run is logged for audit purposes.
This provides:
1. Traceability of what the dashboard was shown and when
2. Debugging information when a refresh goes wrong
3. A record of which anomalies were raised on which day

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each stage of a dashboard refresh has its own event type.
    """
    # Refresh lifecycle
    ANALYSIS_STARTED = "analysis_started"
    ANALYSIS_COMPLETED = "analysis_completed"

    # Transaction retrieval
    TRANSACTIONS_LOADED = "transactions_loaded"
    TRANSACTIONS_LOAD_FAILED = "transactions_load_failed"

    # Analyses
    FORECAST_GENERATED = "forecast_generated"
    ANOMALIES_DETECTED = "anomalies_detected"
    INSIGHTS_GENERATED = "insights_generated"
    RECURRING_EXPENSES_DETECTED = "recurring_expenses_detected"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'report', 'forecast')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - all events of one dashboard refresh share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.analysis_started(correlation_id, forecast_days=30)
        event = AuditEventBuilder.anomalies_detected(correlation_id, counts)
    """

    @staticmethod
    def analysis_started(
        correlation_id: UUID,
        forecast_days: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_STARTED,
            entity_type="report",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Financial analysis started ({forecast_days}-day forecast)",
            details={
                "forecast_days": forecast_days,
            },
        )

    @staticmethod
    def transactions_loaded(
        correlation_id: UUID,
        source: str,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_LOADED,
            entity_type="report",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Loaded {transaction_count} transactions from {source}",
            details={
                "source": source,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def transactions_load_failed(
        correlation_id: UUID,
        source: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="report",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Could not load transactions from {source}",
            error_message=error_message,
            details={
                "source": source,
            },
        )

    @staticmethod
    def forecast_generated(
        correlation_id: UUID,
        days: int,
        ending_balance: str,
        confidence: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FORECAST_GENERATED,
            entity_type="forecast",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"{days}-day forecast ends at {ending_balance} ({confidence} confidence)",
            details={
                "days": days,
                "ending_balance": ending_balance,
                "confidence": confidence,
            },
        )

    @staticmethod
    def anomalies_detected(
        correlation_id: UUID,
        counts_by_type: dict[str, int],
        high_severity_count: int,
    ) -> AuditEvent:
        total = sum(counts_by_type.values())
        return AuditEvent(
            event_type=AuditEventType.ANOMALIES_DETECTED,
            severity=AuditSeverity.WARNING if high_severity_count else AuditSeverity.INFO,
            entity_type="anomalies",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Anomaly scan found {total} anomalies",
            details={
                "counts_by_type": counts_by_type,
                "high_severity_count": high_severity_count,
            },
        )

    @staticmethod
    def insights_generated(
        correlation_id: UUID,
        insight_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHTS_GENERATED,
            entity_type="insights",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Generated {len(insight_ids)} insights",
            details={
                "insight_ids": insight_ids,
            },
        )

    @staticmethod
    def recurring_expenses_detected(
        correlation_id: UUID,
        names: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECURRING_EXPENSES_DETECTED,
            entity_type="recurring_expenses",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Detected {len(names)} recurring expenses",
            details={
                "names": names,
            },
        )

    @staticmethod
    def analysis_completed(
        correlation_id: UUID,
        duration_ms: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ANALYSIS_COMPLETED,
            entity_type="report",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Financial analysis completed in {duration_ms} ms",
            details={
                "duration_ms": duration_ms,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
