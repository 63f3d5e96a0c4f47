"""
In-Memory Storage Implementation

Holds transactions and audit events in process memory. Used by tests and
by callers that already have the transaction list in hand (for example a
web request that received it from the browser's local database).
"""

from collections.abc import Iterable
from uuid import UUID

from finassist.models.audit import AuditEvent
from finassist.models.transaction import Transaction
from finassist.services.storage.interface import AuditStorageInterface, TransactionProvider


class InMemoryTransactionProvider(TransactionProvider):
    """Serves a fixed snapshot of transactions."""

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._transactions = tuple(transactions)

    @property
    def source_name(self) -> str:
        return "memory"

    async def list_transactions(self) -> list[Transaction]:
        return list(self._transactions)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
