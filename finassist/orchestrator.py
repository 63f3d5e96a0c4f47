"""
Main Orchestrator for the Financial Assistant

This module ties together all the components and defines the
end-to-end dashboard refresh:
1. Load transactions (provider → validated snapshot)
2. Analyse (forecast, anomalies, insights, recurring expenses)
3. Report (FinancialReport for the dashboard)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Transactions are fetched exactly once per refresh
- No analysis runs on a failed fetch
- Every step is audited

The analyses themselves are synchronous and pure. They run concurrently in
worker threads against the same immutable snapshot, so no locking is needed.
"""

import asyncio
import time
from datetime import datetime
from typing import Optional, Union
from uuid import UUID

import structlog

from finassist.analysis import linear_trend, summarize_forecast
from finassist.analysis.stats import format_currency
from finassist.assistant import FinancialAssistant
from finassist.audit import AuditLogger, create_correlation_id
from finassist.models.analysis import FinancialReport, ForecastMethod
from finassist.models.transaction import Transaction
from finassist.services.storage import (
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionProvider,
    InMemoryTransactionProvider,
    TransactionProvider,
)

logger = structlog.get_logger(__name__)


class TransactionRetrievalError(Exception):
    """The transaction provider could not be read."""

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"Could not load transactions from {source}: {message}")


class InsightsFlow:
    """
    Orchestrates one refresh of the insights dashboard.

    Flow:
    1. Start → audit the requested horizon
    2. Load → fetch every transaction from the provider
    3. Analyse → run the four analyses concurrently
    4. Summarise → forecast totals and balance trend
    5. Report → audit each result and return the FinancialReport

    The flow never writes transactions. Only audit events are persisted.
    """

    def __init__(
        self,
        provider: TransactionProvider,
        assistant: Optional[FinancialAssistant] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._provider = provider
        self._assistant = assistant or FinancialAssistant()
        self._audit_logger = audit_logger

    @property
    def assistant(self) -> FinancialAssistant:
        return self._assistant

    async def load_transactions(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Fetch the full transaction list from the provider.

        Raises:
            TransactionRetrievalError: If the provider fails. The failure
                is audited before it is raised; connection failures are
                also audited as external service errors.
        """
        correlation_id = correlation_id or create_correlation_id()
        source = self._provider.source_name

        try:
            transactions = await self._provider.list_transactions()
        except Exception as e:
            if self._audit_logger:
                if isinstance(e, ConnectionError):
                    # The backing service itself could not be reached
                    await self._audit_logger.log_external_service_error(
                        service=source,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )
                await self._audit_logger.log_provider_error(
                    correlation_id=correlation_id,
                    source=source,
                    error_message=str(e),
                )
            raise TransactionRetrievalError(source, str(e)) from e

        if self._audit_logger:
            await self._audit_logger.log_transactions_loaded(
                correlation_id=correlation_id,
                source=source,
                transaction_count=len(transactions),
            )

        return transactions

    async def refresh(
        self,
        forecast_days: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
        now: Optional[datetime] = None,
        forecast_method: Union[ForecastMethod, str] = ForecastMethod.DAILY_PATTERN,
    ) -> FinancialReport:
        """
        Run every analysis and build the dashboard report.

        Args:
            forecast_days: Forecast horizon. Defaults to the configured
                default; zero gives an empty forecast.
            correlation_id: Ties the audit events of this refresh together.
            now: Reference time for every analysis of this refresh.
            forecast_method: How future days are estimated.

        Raises:
            ValueError: If forecast_days is negative or above the configured maximum,
                or forecast_method is unknown.
            TransactionRetrievalError: If the provider fails.
        """
        settings = self._assistant.settings
        if forecast_days is None:
            forecast_days = settings.default_forecast_days
        if forecast_days < 0 or forecast_days > settings.max_forecast_days:
            raise ValueError(
                f"forecast_days must be between 0 and {settings.max_forecast_days}, "
                f"got {forecast_days}"
            )
        forecast_method = ForecastMethod(forecast_method)

        correlation_id = correlation_id or create_correlation_id()
        # One reference time for all analyses of this refresh
        now = now or self._assistant.now()
        started = time.monotonic()

        if self._audit_logger:
            await self._audit_logger.log_analysis_started(
                correlation_id=correlation_id,
                forecast_days=forecast_days,
            )

        transactions = await self.load_transactions(correlation_id)

        try:
            forecast, anomalies, insights, recurring = await asyncio.gather(
                asyncio.to_thread(
                    self._assistant.generate_cash_flow_forecast,
                    transactions,
                    forecast_days,
                    now,
                    forecast_method,
                ),
                asyncio.to_thread(self._assistant.detect_anomalies, transactions, now),
                asyncio.to_thread(self._assistant.generate_insights, transactions, now),
                asyncio.to_thread(self._assistant.detect_recurring_expenses, transactions),
            )
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        summary = summarize_forecast(forecast)
        balance_trend = linear_trend([p.projected_balance for p in forecast])

        report = FinancialReport(
            correlation_id=str(correlation_id),
            generated_at=now,
            transaction_count=len(transactions),
            forecast_days=forecast_days,
            forecast_method=forecast_method,
            forecast=forecast,
            forecast_summary=summary,
            balance_trend=balance_trend,
            anomalies=anomalies,
            insights=insights,
            recurring_expenses=recurring,
        )

        if self._audit_logger:
            await self._audit_results(correlation_id, report, started)

        return report

    async def _audit_results(
        self,
        correlation_id: UUID,
        report: FinancialReport,
        started: float,
    ) -> None:
        summary = report.forecast_summary

        await self._audit_logger.log_forecast_generated(
            correlation_id=correlation_id,
            days=summary.days,
            ending_balance=format_currency(
                summary.ending_balance, self._assistant.settings.currency_symbol
            ),
            confidence=summary.confidence.value,
        )

        counts_by_type: dict[str, int] = {}
        for anomaly in report.anomalies:
            counts_by_type[anomaly.type.value] = counts_by_type.get(anomaly.type.value, 0) + 1
        await self._audit_logger.log_anomalies_detected(
            correlation_id=correlation_id,
            counts_by_type=counts_by_type,
            high_severity_count=report.high_severity_anomaly_count,
        )

        await self._audit_logger.log_insights_generated(
            correlation_id=correlation_id,
            insight_ids=[i.id for i in report.insights],
        )
        await self._audit_logger.log_recurring_expenses_detected(
            correlation_id=correlation_id,
            names=[r.name for r in report.recurring_expenses],
        )
        await self._audit_logger.log_analysis_completed(
            correlation_id=correlation_id,
            duration_ms=int((time.monotonic() - started) * 1000),
        )


def create_app_components(
    use_storage: bool = True,
) -> tuple[InsightsFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False for testing without storage.

    Returns:
        (insights_flow, sheets_client)
    """
    sheets_client = None
    provider: TransactionProvider = InMemoryTransactionProvider()
    audit_logger = AuditLogger()  # Local-only logging

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            provider = GoogleSheetsTransactionProvider(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None

    insights_flow = InsightsFlow(
        provider=provider,
        assistant=FinancialAssistant(),
        audit_logger=audit_logger,
    )

    return insights_flow, sheets_client
