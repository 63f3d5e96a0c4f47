"""
Integration tests for the dashboard refresh flow.

Uses the in-memory provider and audit storage; no external services.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from finassist.assistant import FinancialAssistant
from finassist.audit import AuditLogger
from finassist.models import AnomalyType, ForecastMethod, InsightType, TrendDirection
from finassist.models.audit import AuditEventType
from finassist.orchestrator import (
    InsightsFlow,
    TransactionRetrievalError,
    create_app_components,
)
from finassist.services.storage import (
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryTransactionProvider,
    StorageError,
    TransactionProvider,
)


class BrokenProvider(TransactionProvider):
    @property
    def source_name(self) -> str:
        return "broken"

    async def list_transactions(self):
        raise StorageError("spreadsheet unavailable")


class UnreachableProvider(TransactionProvider):
    @property
    def source_name(self) -> str:
        return "google_sheets"

    async def list_transactions(self):
        raise ConnectionError("Failed to connect to Google Sheets: timed out")


class CrashingAssistant(FinancialAssistant):
    def detect_anomalies(self, transactions, now=None):
        raise RuntimeError("scan crashed")


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def make_flow(settings, now, audit_storage):
    def make(provider):
        return InsightsFlow(
            provider=provider,
            assistant=FinancialAssistant(settings, clock=lambda: now),
            audit_logger=AuditLogger(audit_storage),
        )
    return make


class TestInsightsFlow:
    """End-to-end refresh."""

    @pytest.mark.asyncio
    async def test_refresh_builds_report(self, txn, now, make_flow):
        """Test a full refresh."""
        transactions = [
            txn("income", "3000", day=d, category="Sales") for d in (2, 9, 16)
        ] + [
            txn(amount="1500", day=4, category="Rent", description="Office rent"),
            txn(amount="120", day=6, category="Travel"),
        ]
        flow = make_flow(InMemoryTransactionProvider(transactions))

        report = await flow.refresh(forecast_days=60)

        assert report.transaction_count == 5
        assert report.forecast_days == 60
        assert len(report.forecast) == 60
        assert report.forecast[0].date == now.date()
        assert report.forecast_summary.days == 60
        assert report.forecast_summary.ending_balance == report.forecast[-1].projected_balance
        assert report.generated_at == now
        assert [a.type for a in report.anomalies] == [AnomalyType.LARGE_TRANSACTION]
        assert InsightType.OPPORTUNITY in [i.type for i in report.insights]

    @pytest.mark.asyncio
    async def test_refresh_matches_direct_calls(self, txn, now, settings, make_flow):
        """Test that the flow returns what the assistant computes."""
        transactions = [txn("income", "800", day=3), txn(amount="2500", day=1)]
        assistant = FinancialAssistant(settings, clock=lambda: now)

        report = await make_flow(InMemoryTransactionProvider(transactions)).refresh()

        assert report.forecast == assistant.generate_cash_flow_forecast(transactions)
        assert report.anomalies == assistant.detect_anomalies(transactions)
        assert report.insights == assistant.generate_insights(transactions)

    @pytest.mark.asyncio
    async def test_empty_books(self, make_flow):
        """Test a refresh with no transactions."""
        report = await make_flow(InMemoryTransactionProvider()).refresh()

        assert len(report.forecast) == 30
        assert report.anomalies == []
        assert [i.type for i in report.insights] == [InsightType.WARNING]
        assert report.recurring_expenses == []
        assert report.balance_trend.direction == TrendDirection.STABLE
        assert report.forecast_summary.ending_balance == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_balance_trend_follows_forecast(self, txn, make_flow):
        """Test the balance trend over the forecast."""
        transactions = [txn(amount="50", day=d) for d in range(30)]

        report = await make_flow(InMemoryTransactionProvider(transactions)).refresh()

        assert report.balance_trend.direction == TrendDirection.DOWN
        assert report.balance_trend.slope == -50.0

    @pytest.mark.asyncio
    async def test_refresh_is_audited(self, make_flow, audit_storage):
        """Test the audit trail of a refresh."""
        correlation_id = uuid4()

        report = await make_flow(InMemoryTransactionProvider()).refresh(
            correlation_id=correlation_id
        )

        assert report.correlation_id == str(correlation_id)
        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.ANALYSIS_STARTED,
            AuditEventType.TRANSACTIONS_LOADED,
            AuditEventType.FORECAST_GENERATED,
            AuditEventType.ANOMALIES_DETECTED,
            AuditEventType.INSIGHTS_GENERATED,
            AuditEventType.RECURRING_EXPENSES_DETECTED,
            AuditEventType.ANALYSIS_COMPLETED,
        ]
        insights_event = events[4]
        assert insights_event.details["insight_ids"] == ["insight-low-cash-balance"]

    @pytest.mark.asyncio
    async def test_provider_failure(self, make_flow, audit_storage):
        """Test that provider failures are audited and raised."""
        correlation_id = uuid4()
        flow = make_flow(BrokenProvider())

        with pytest.raises(TransactionRetrievalError, match="spreadsheet unavailable") as exc:
            await flow.refresh(correlation_id=correlation_id)

        assert exc.value.source == "broken"
        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.ANALYSIS_STARTED,
            AuditEventType.TRANSACTIONS_LOAD_FAILED,
        ]

    @pytest.mark.asyncio
    async def test_unreachable_service_is_audited(self, make_flow, audit_storage):
        """Connection failures are audited as external service errors."""
        correlation_id = uuid4()
        flow = make_flow(UnreachableProvider())

        with pytest.raises(TransactionRetrievalError, match="timed out"):
            await flow.refresh(correlation_id=correlation_id)

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.ANALYSIS_STARTED,
            AuditEventType.EXTERNAL_SERVICE_ERROR,
            AuditEventType.TRANSACTIONS_LOAD_FAILED,
        ]
        assert events[1].details == {"service": "google_sheets"}
        assert "timed out" in events[1].error_message

    @pytest.mark.asyncio
    async def test_analysis_failure_is_audited(self, settings, now, audit_storage):
        """Test that a crashing analysis is audited and raised."""
        correlation_id = uuid4()
        flow = InsightsFlow(
            provider=InMemoryTransactionProvider(),
            assistant=CrashingAssistant(settings, clock=lambda: now),
            audit_logger=AuditLogger(audit_storage),
        )

        with pytest.raises(RuntimeError, match="scan crashed"):
            await flow.refresh(correlation_id=correlation_id)

        events = await audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.ANALYSIS_STARTED,
            AuditEventType.TRANSACTIONS_LOADED,
            AuditEventType.SYSTEM_ERROR,
        ]
        assert events[2].error_message == "scan crashed"

    @pytest.mark.asyncio
    async def test_forecast_method(self, txn, now, settings, make_flow):
        """Test that the refresh uses and reports the requested method."""
        transactions = [txn("income", "100", day=7)]
        assistant = FinancialAssistant(settings, clock=lambda: now)

        report = await make_flow(InMemoryTransactionProvider(transactions)).refresh(
            forecast_method="weighted"
        )

        assert report.forecast_method == ForecastMethod.WEIGHTED
        assert report.forecast == assistant.generate_cash_flow_forecast(
            transactions, method=ForecastMethod.WEIGHTED
        )

    @pytest.mark.asyncio
    async def test_unknown_forecast_method(self, make_flow, audit_storage):
        """Test that an unknown method is rejected before anything runs."""
        with pytest.raises(ValueError):
            await make_flow(InMemoryTransactionProvider()).refresh(forecast_method="magic")

        assert await audit_storage.get_recent_events() == []

    @pytest.mark.asyncio
    async def test_forecast_days_above_maximum(self, make_flow, settings):
        """Test the horizon upper bound."""
        flow = make_flow(InMemoryTransactionProvider())
        with pytest.raises(ValueError):
            await flow.refresh(forecast_days=settings.max_forecast_days + 1)

    @pytest.mark.asyncio
    async def test_zero_forecast_days(self, make_flow):
        """Test a refresh without a forecast."""
        report = await make_flow(InMemoryTransactionProvider()).refresh(forecast_days=0)

        assert report.forecast == []
        assert report.forecast_summary.days == 0


class TestCreateAppComponents:
    """Factory wiring."""

    def test_without_storage(self):
        """Test component creation without storage."""
        flow, sheets_client = create_app_components(use_storage=False)

        assert isinstance(flow, InsightsFlow)
        assert sheets_client is None

    def test_falls_back_when_sheets_not_configured(self, monkeypatch):
        """Test the in-memory fallback."""
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        flow, sheets_client = create_app_components(use_storage=True)

        assert isinstance(flow, InsightsFlow)
        assert sheets_client is None
