"""
Audit Models for Subscription Tracker

Every write to the subscription store is logged for audit purposes.
This provides:
1. Traceability of who changed which subscription and when
2. Debugging information when the store rejects a change
3. Ability to reconstruct what happened during one user action

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Reads
    SUBSCRIPTIONS_LOADED = "subscriptions_loaded"

    # Writes
    SUBSCRIPTION_CREATED = "subscription_created"
    SUBSCRIPTION_UPDATED = "subscription_updated"
    SUBSCRIPTION_DELETED = "subscription_deleted"

    # Rejected input
    VALIDATION_FAILED = "validation_failed"

    # Failures
    STORE_ERROR = "store_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context
    owner: Optional[str] = Field(
        default=None,
        description="Principal whose data was touched"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="Subscription this event relates to"
    )
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one user action"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "owner": self.owner,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, owner, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.owner or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.subscription_created(subscription, correlation_id)
        event = AuditEventBuilder.store_error("insert", str(exc), correlation_id)
    """

    @staticmethod
    def subscriptions_loaded(
        owner: str,
        count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTIONS_LOADED,
            severity=AuditSeverity.DEBUG,
            owner=owner,
            correlation_id=correlation_id,
            description=f"Loaded {count} subscriptions",
            details={"count": count},
        )

    @staticmethod
    def subscription_created(
        subscription_id: UUID,
        owner: str,
        service_name: str,
        price: str,
        billing_cycle: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_CREATED,
            owner=owner,
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription created: {service_name} - {price}/{billing_cycle}",
            details={
                "service_name": service_name,
                "price": price,
                "billing_cycle": billing_cycle,
            },
            is_user_action=True,
        )

    @staticmethod
    def subscription_updated(
        subscription_id: UUID,
        owner: str,
        changed_fields: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_UPDATED,
            owner=owner,
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Subscription updated ({len(changed_fields)} fields changed)",
            details={"changed_fields": changed_fields},
            is_user_action=True,
        )

    @staticmethod
    def subscription_deleted(
        subscription_id: UUID,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBSCRIPTION_DELETED,
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description="Subscription deleted",
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        errors: dict[str, str],
        correlation_id: UUID,
        subscription_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Submission rejected with {len(errors)} invalid fields",
            details={"errors": errors},
            is_user_action=True,
        )

    @staticmethod
    def store_error(
        operation: str,
        error_message: str,
        correlation_id: UUID,
        subscription_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            entity_id=subscription_id,
            correlation_id=correlation_id,
            description=f"Store operation failed: {operation}",
            error_message=error_message,
            details={"operation": operation},
        )
