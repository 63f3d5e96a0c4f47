"""Services package."""

from finassist.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsTransactionProvider,
    InMemoryAuditStorage,
    InMemoryTransactionProvider,
    NotFoundError,
    StorageError,
    TransactionProvider,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsTransactionProvider",
    "InMemoryAuditStorage",
    "InMemoryTransactionProvider",
    "NotFoundError",
    "StorageError",
    "TransactionProvider",
]
