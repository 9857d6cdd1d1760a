"""
Data Models Package

This package contains all Pydantic models used in the Subscription Tracker.
All data flowing through the system must conform to these schemas.
"""

from subtracker.models.subscription import (
    DEFAULT_CATEGORIES,
    MAX_PRICE,
    BillingCycle,
    FieldError,
    SpendSummary,
    Subscription,
    SubscriptionDraft,
    SubscriptionValidationResult,
    ValidationErrorType,
    is_absolute_url,
)
from subtracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Subscription models
    "DEFAULT_CATEGORIES",
    "MAX_PRICE",
    "BillingCycle",
    "FieldError",
    "SpendSummary",
    "Subscription",
    "SubscriptionDraft",
    "SubscriptionValidationResult",
    "ValidationErrorType",
    "is_absolute_url",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
