"""
Storage Services Package

Provides abstract interfaces and concrete implementations for reading
transactions and persisting the audit trail.
Currently implements Google Sheets as the backend, but designed to be swappable.
"""

from finassist.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    NotFoundError,
    StorageError,
    TransactionProvider,
)
from finassist.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    TRANSACTION_COLUMNS,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionProvider,
)
from finassist.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryTransactionProvider,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "TransactionProvider",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "AUDIT_COLUMNS",
    "TRANSACTION_COLUMNS",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionProvider",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryTransactionProvider",
]
