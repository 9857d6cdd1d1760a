"""
Audit Logger

DESIGN DECISION: Every write to the subscription store is logged.
This provides:
1. Traceability of changes per owner
2. Debugging capability when the store rejects a write

The audit logger:
- Is async to match the storage interface
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from subtracker.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from subtracker.models.subscription import Subscription
from subtracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_subscriptions_loaded(
        self,
        owner: str,
        count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a dashboard load."""
        await self.log(AuditEventBuilder.subscriptions_loaded(
            owner=owner,
            count=count,
            correlation_id=correlation_id,
        ))

    async def log_subscription_created(
        self,
        subscription: Subscription,
        correlation_id: UUID,
    ) -> None:
        """Log a new subscription."""
        await self.log(AuditEventBuilder.subscription_created(
            subscription_id=subscription.id,
            owner=subscription.owner,
            service_name=subscription.service_name,
            price=str(subscription.price),
            billing_cycle=subscription.billing_cycle.value,
            correlation_id=correlation_id,
        ))

    async def log_subscription_updated(
        self,
        subscription: Subscription,
        changed_fields: list[str],
        correlation_id: UUID,
    ) -> None:
        """Log a subscription edit."""
        await self.log(AuditEventBuilder.subscription_updated(
            subscription_id=subscription.id,
            owner=subscription.owner,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        ))

    async def log_subscription_deleted(
        self,
        subscription_id: UUID,
        correlation_id: UUID,
    ) -> None:
        """Log a deletion."""
        await self.log(AuditEventBuilder.subscription_deleted(
            subscription_id=subscription_id,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        errors: dict[str, str],
        correlation_id: UUID,
        subscription_id: Optional[UUID] = None,
    ) -> None:
        """Log a rejected form submission."""
        await self.log(AuditEventBuilder.validation_failed(
            errors=errors,
            correlation_id=correlation_id,
            subscription_id=subscription_id,
        ))

    async def log_store_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
        subscription_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed store call."""
        await self.log(AuditEventBuilder.store_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
            subscription_id=subscription_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving the form).
    Pass it through all subsequent operations.
    """
    return uuid4()
