"""Services package."""

from subtracker.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSubscriptionStorage,
    InMemoryAuditStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
    StorageError,
    StoreRejectedError,
    StoreUnavailableError,
    SubscriptionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsSubscriptionStorage",
    "InMemoryAuditStorage",
    "InMemorySubscriptionStorage",
    "NotFoundError",
    "StorageError",
    "StoreRejectedError",
    "StoreUnavailableError",
    "SubscriptionStorageInterface",
]
