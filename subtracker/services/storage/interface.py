"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

The interface is intentionally simple - we're not building a full ORM.
Just the operations subscription management needs.

Stores are only ever handed drafts that already passed the validator.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from subtracker.models.subscription import Subscription, SubscriptionDraft
from subtracker.models.audit import AuditEvent


class SubscriptionStorageInterface(ABC):
    """
    Abstract interface for subscription storage operations.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_subscriptions(self, owner: str) -> list[Subscription]:
        """
        List all subscriptions of one owner.

        Returns:
            Subscriptions ordered by next_billing_date ascending

        Raises:
            StoreUnavailableError: If the backend can't be reached
        """
        pass

    @abstractmethod
    async def get_subscription(
        self,
        subscription_id: UUID,
    ) -> Optional[Subscription]:
        """
        Retrieve a subscription by its ID.

        Returns:
            The subscription if found, None otherwise
        """
        pass

    @abstractmethod
    async def insert_subscription(
        self,
        owner: str,
        draft: SubscriptionDraft,
    ) -> Subscription:
        """
        Store a new subscription.

        The store assigns id, created_at and updated_at.

        Returns:
            The stored subscription

        Raises:
            StorageError: If the insert fails
        """
        pass

    @abstractmethod
    async def update_subscription(
        self,
        subscription_id: UUID,
        draft: SubscriptionDraft,
    ) -> Subscription:
        """
        Replace the editable fields of an existing subscription.

        id, owner and created_at are kept; updated_at is refreshed.

        Returns:
            The updated subscription

        Raises:
            NotFoundError: If the subscription doesn't exist
            StorageError: If the update fails
        """
        pass

    @abstractmethod
    async def delete_subscription(self, subscription_id: UUID) -> bool:
        """
        Delete a subscription by ID.

        Returns:
            True if deleted, False if it didn't exist
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
        Get all events of one user action, in chronological order.
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StoreUnavailableError(StorageError):
    """Could not reach the storage backend."""
    pass


class StoreRejectedError(StorageError):
    """The storage backend refused the operation."""
    pass


class NotFoundError(StoreRejectedError):
    """Entity not found in storage."""
    pass
