"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the production backend; the in-memory store backs tests
and credential-less local runs.
"""

from subtracker.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StorageError,
    StoreRejectedError,
    StoreUnavailableError,
    SubscriptionStorageInterface,
)
from subtracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemorySubscriptionStorage,
)
from subtracker.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSubscriptionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SubscriptionStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageError",
    "StoreRejectedError",
    "StoreUnavailableError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemorySubscriptionStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSubscriptionStorage",
]
