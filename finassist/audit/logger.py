"""
Audit Logger

DESIGN DECISION: Every dashboard refresh is logged stage by stage.
This provides:
1. Traceability of what the dashboard showed
2. Debugging capability when a data source misbehaves
3. A history of which anomalies were raised and when

The audit logger:
- Is async so the refresh flow can await it alongside storage I/O
- Gracefully handles failures (a broken audit sheet never breaks a refresh)
- Supports correlation IDs to trace all events of one refresh
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from finassist.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from finassist.services.storage.interface import AuditStorageInterface


def get_logger(name: Optional[str] = None):
    """Return a structlog logger bound to the shared configuration."""
    return structlog.get_logger(name)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when one is configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_analysis_started(
        self,
        correlation_id: UUID,
        forecast_days: int,
    ) -> None:
        """Log the start of a dashboard refresh."""
        await self.log(AuditEventBuilder.analysis_started(
            correlation_id=correlation_id,
            forecast_days=forecast_days,
        ))

    async def log_transactions_loaded(
        self,
        correlation_id: UUID,
        source: str,
        transaction_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.transactions_loaded(
            correlation_id=correlation_id,
            source=source,
            transaction_count=transaction_count,
        ))

    async def log_provider_error(
        self,
        correlation_id: UUID,
        source: str,
        error_message: str,
    ) -> None:
        """Log a transaction provider that could not be read."""
        await self.log(AuditEventBuilder.transactions_load_failed(
            correlation_id=correlation_id,
            source=source,
            error_message=error_message,
        ))

    async def log_forecast_generated(
        self,
        correlation_id: UUID,
        days: int,
        ending_balance: str,
        confidence: str,
    ) -> None:
        await self.log(AuditEventBuilder.forecast_generated(
            correlation_id=correlation_id,
            days=days,
            ending_balance=ending_balance,
            confidence=confidence,
        ))

    async def log_anomalies_detected(
        self,
        correlation_id: UUID,
        counts_by_type: dict[str, int],
        high_severity_count: int,
    ) -> None:
        await self.log(AuditEventBuilder.anomalies_detected(
            correlation_id=correlation_id,
            counts_by_type=counts_by_type,
            high_severity_count=high_severity_count,
        ))

    async def log_insights_generated(
        self,
        correlation_id: UUID,
        insight_ids: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.insights_generated(
            correlation_id=correlation_id,
            insight_ids=insight_ids,
        ))

    async def log_recurring_expenses_detected(
        self,
        correlation_id: UUID,
        names: list[str],
    ) -> None:
        await self.log(AuditEventBuilder.recurring_expenses_detected(
            correlation_id=correlation_id,
            names=names,
        ))

    async def log_analysis_completed(
        self,
        correlation_id: UUID,
        duration_ms: int,
    ) -> None:
        await self.log(AuditEventBuilder.analysis_completed(
            correlation_id=correlation_id,
            duration_ms=duration_ms,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a dashboard refresh and pass it through
    every stage of that refresh.
    """
    return uuid4()
