"""
Main Orchestrator for Subscription Tracker

This module ties together the validator, the calculator and the store,
and defines the flows the presentation layer calls:
1. Load (store → calculator)
2. Create / Update (raw form → validator → store)
3. Delete (store)

DESIGN DECISION: The orchestrator holds no subscription state.
The presentation layer owns the current collection and passes the
owner and raw input in explicitly on every call. Totals are re-derived
from whatever collection the caller holds.

Store failures are audited and then re-raised for the presentation
layer to show. Nothing is retried here.
"""

from typing import Mapping, Optional
from uuid import UUID

import structlog
from pydantic import BaseModel, Field

from subtracker.aggregates import calculate_totals
from subtracker.audit import AuditLogger, create_correlation_id
from subtracker.models.subscription import (
    SpendSummary,
    Subscription,
    SubscriptionValidationResult,
)
from subtracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsSubscriptionStorage,
    InMemoryAuditStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
    StorageError,
    SubscriptionStorageInterface,
)
from subtracker.validation import SubscriptionValidator, describe_changes


logger = structlog.get_logger(__name__)


class SubscriptionDashboard(BaseModel):
    """One owner's subscriptions plus their normalized totals."""

    subscriptions: list[Subscription] = Field(default_factory=list)
    summary: SpendSummary = Field(default_factory=SpendSummary)


class SubmissionResult(BaseModel):
    """
    Outcome of a create or update submission.

    `subscription` is set only when validation passed and the store
    accepted the write.
    """

    validation: SubscriptionValidationResult
    subscription: Optional[Subscription] = None

    @property
    def saved(self) -> bool:
        return self.subscription is not None


class SubscriptionFlow:
    """
    Orchestrates subscription management.

    Flow for writes:
    1. Validate raw form input (no storage access)
    2. Stop with per-field errors if invalid
    3. Write the normalized draft to the store
    4. Audit the outcome
    """

    def __init__(
        self,
        storage: SubscriptionStorageInterface,
        validator: Optional[SubscriptionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or SubscriptionValidator()
        self._audit_logger = audit_logger or AuditLogger()

    @property
    def validator(self) -> SubscriptionValidator:
        return self._validator

    @staticmethod
    def summarize(subscriptions: list[Subscription]) -> SpendSummary:
        """Re-derive totals for a collection the caller already holds."""
        return calculate_totals(subscriptions)

    async def load(
        self,
        owner: str,
        correlation_id: Optional[UUID] = None,
    ) -> SubscriptionDashboard:
        """
        Load an owner's subscriptions and compute totals.

        Raises:
            StorageError: If the store can't be read
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            subscriptions = await self._storage.list_subscriptions(owner)
        except StorageError as e:
            await self._audit_logger.log_store_error(
                operation="list",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_subscriptions_loaded(
            owner=owner,
            count=len(subscriptions),
            correlation_id=correlation_id,
        )

        return SubscriptionDashboard(
            subscriptions=subscriptions,
            summary=calculate_totals(subscriptions),
        )

    async def create(
        self,
        owner: str,
        raw: Mapping[str, Optional[str]],
        correlation_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        """
        Validate and store a new subscription.

        Returns:
            SubmissionResult; check `.saved` / `.validation.errors`

        Raises:
            StorageError: If validation passed but the store failed
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(raw)
        if not validation.is_valid:
            await self._audit_logger.log_validation_failed(
                errors=validation.messages(),
                correlation_id=correlation_id,
            )
            return SubmissionResult(validation=validation)

        try:
            subscription = await self._storage.insert_subscription(
                owner, validation.subscription
            )
        except StorageError as e:
            await self._audit_logger.log_store_error(
                operation="insert",
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise

        await self._audit_logger.log_subscription_created(
            subscription=subscription,
            correlation_id=correlation_id,
        )
        return SubmissionResult(validation=validation, subscription=subscription)

    async def update(
        self,
        subscription_id: UUID,
        raw: Mapping[str, Optional[str]],
        correlation_id: Optional[UUID] = None,
    ) -> SubmissionResult:
        """
        Validate and replace an existing subscription.

        Raises:
            NotFoundError: If the subscription no longer exists
            StorageError: If validation passed but the store failed
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = self._validator.validate(raw)
        if not validation.is_valid:
            await self._audit_logger.log_validation_failed(
                errors=validation.messages(),
                correlation_id=correlation_id,
                subscription_id=subscription_id,
            )
            return SubmissionResult(validation=validation)

        try:
            existing = await self._storage.get_subscription(subscription_id)
            if existing is None:
                raise NotFoundError(f"Subscription not found: {subscription_id}")
            subscription = await self._storage.update_subscription(
                subscription_id, validation.subscription
            )
        except StorageError as e:
            await self._audit_logger.log_store_error(
                operation="update",
                error_message=str(e),
                correlation_id=correlation_id,
                subscription_id=subscription_id,
            )
            raise

        await self._audit_logger.log_subscription_updated(
            subscription=subscription,
            changed_fields=describe_changes(existing, validation.subscription),
            correlation_id=correlation_id,
        )
        return SubmissionResult(validation=validation, subscription=subscription)

    async def delete(
        self,
        subscription_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a subscription.

        Returns:
            True if it was deleted, False if it didn't exist

        Raises:
            StorageError: If the store failed
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            deleted = await self._storage.delete_subscription(subscription_id)
        except StorageError as e:
            await self._audit_logger.log_store_error(
                operation="delete",
                error_message=str(e),
                correlation_id=correlation_id,
                subscription_id=subscription_id,
            )
            raise

        if deleted:
            await self._audit_logger.log_subscription_deleted(
                subscription_id=subscription_id,
                correlation_id=correlation_id,
            )
        return deleted


def create_app_components(
    use_storage: bool = True,
) -> tuple[SubscriptionFlow, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on in-memory storage.

    Returns:
        (subscription_flow, sheets_client)
    """
    sheets_client = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            storage = GoogleSheetsSubscriptionStorage(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            use_storage = False

    if not use_storage:
        storage = InMemorySubscriptionStorage()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    flow = SubscriptionFlow(
        storage=storage,
        audit_logger=audit_logger,
    )
    return flow, sheets_client
