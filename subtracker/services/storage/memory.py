"""
In-Memory Storage Implementation

Used by the test suite and for local runs without Google credentials.
Data lives only as long as the process.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from subtracker.models.audit import AuditEvent
from subtracker.models.subscription import Subscription, SubscriptionDraft
from subtracker.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    SubscriptionStorageInterface,
)


class InMemorySubscriptionStorage(SubscriptionStorageInterface):
    """Dict-backed subscription store keyed by subscription ID."""

    def __init__(self):
        self._subscriptions: dict[UUID, Subscription] = {}

    async def list_subscriptions(self, owner: str) -> list[Subscription]:
        subscriptions = [
            s for s in self._subscriptions.values() if s.owner == owner
        ]
        subscriptions.sort(key=lambda s: s.next_billing_date)
        return subscriptions

    async def get_subscription(
        self,
        subscription_id: UUID,
    ) -> Optional[Subscription]:
        return self._subscriptions.get(subscription_id)

    async def insert_subscription(
        self,
        owner: str,
        draft: SubscriptionDraft,
    ) -> Subscription:
        now = datetime.utcnow()
        subscription = Subscription(
            **draft.model_dump(),
            owner=owner,
            created_at=now,
            updated_at=now,
        )
        self._subscriptions[subscription.id] = subscription
        return subscription

    async def update_subscription(
        self,
        subscription_id: UUID,
        draft: SubscriptionDraft,
    ) -> Subscription:
        existing = self._subscriptions.get(subscription_id)
        if existing is None:
            raise NotFoundError(f"Subscription not found: {subscription_id}")

        updated = existing.replaced_with(draft)
        self._subscriptions[subscription_id] = updated
        return updated

    async def delete_subscription(self, subscription_id: UUID) -> bool:
        return self._subscriptions.pop(subscription_id, None) is not None


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

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
