"""
Abstract Storage Interface

DESIGN DECISION: The assistant never reads the books directly.
It asks a TransactionProvider for the full transaction list, once per
refresh. This allows us to:
1. Read from Google Sheets today and a database later
2. Use in-memory storage for testing
3. Keep the analyses decoupled from where the data lives

Providers are READ-ONLY. Creating, editing and deleting transactions is
the bookkeeping application's job, not ours.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from finassist.models.audit import AuditEvent
from finassist.models.transaction import Transaction


class TransactionProvider(ABC):
    """
    Abstract source of the business's transactions.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Short name of the backing store, used in audit events."""
        pass

    @abstractmethod
    async def list_transactions(self) -> list[Transaction]:
        """
        Return every transaction of the business.

        Returns:
            All transactions, already validated

        Raises:
            StorageError: If the backing store cannot be read
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one dashboard refresh).

        Args:
            correlation_id: The correlation identifier

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
