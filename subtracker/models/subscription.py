"""
Core Data Models for Subscription Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce the entity invariants at runtime (price >= 0, closed billing cycle)
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Prices are Decimal, not float.
Summing two-decimal prices stays exact, so totals never drift.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    AnyUrl,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class BillingCycle(str, Enum):
    """
    How often a subscription is charged.

    DESIGN DECISION: Closed enumeration. Quarterly, weekly etc. are not
    representable.
    """
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @property
    def months(self) -> int:
        """Number of months covered by one charge."""
        return 1 if self is BillingCycle.MONTHLY else 12


class ValidationErrorType(str, Enum):
    """Kinds of per-field validation failures."""
    REQUIRED_FIELD_MISSING = "required_field_missing"
    INVALID_NUMBER = "invalid_number"
    INVALID_ENUM = "invalid_enum"
    INVALID_URL = "invalid_url"
    INVALID_DATE = "invalid_date"


_URL_ADAPTER = TypeAdapter(AnyUrl)


def is_absolute_url(value: str) -> bool:
    """Check that `value` parses as an absolute URL (scheme required)."""
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return True


# Upper bound on a single price. Keeps every total well inside the
# default decimal context.
MAX_PRICE = Decimal("1e15")


# Categories offered by the forms. Not enforced by the validator.
DEFAULT_CATEGORIES = (
    "Entertainment",
    "Music",
    "Video",
    "Software",
    "Other",
)


# =============================================================================
# CORE SUBSCRIPTION MODELS
# =============================================================================

class SubscriptionDraft(BaseModel):
    """
    The user-editable part of a subscription.

    This is what the validator produces from raw form input and what the
    store receives on insert and update (whole-record replace).
    """
    service_name: str = Field(
        ...,
        min_length=1,
        description="Name of the subscribed service"
    )
    price: Decimal = Field(
        ...,
        ge=0,
        le=MAX_PRICE,
        description="Price per billing cycle, in the owner's currency"
    )
    billing_cycle: BillingCycle = Field(
        ...,
        description="How often the price is charged"
    )
    next_billing_date: date = Field(
        ...,
        description="Next charge date (not required to be in the future)"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Free-text category"
    )
    service_url: Optional[str] = Field(
        default=None,
        description="Link to the service's account page"
    )
    notes: Optional[str] = Field(
        default=None,
        description="User notes, kept exactly as typed"
    )

    @field_validator('service_name', 'category', mode='before')
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('service_url', mode='before')
    @classmethod
    def blank_is_absent(cls, v: Optional[str]) -> Optional[str]:
        """Blank URL text is stored as absent."""
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator('service_url')
    @classmethod
    def validate_service_url(cls, v: Optional[str]) -> Optional[str]:
        """Require an absolute URL when one is given."""
        if v is not None and not is_absolute_url(v):
            raise ValueError(f"Not a valid absolute URL: {v}")
        return v

    def draft(self) -> "SubscriptionDraft":
        """Return only the editable fields."""
        return SubscriptionDraft(
            **self.model_dump(include=set(SubscriptionDraft.model_fields))
        )


class Subscription(SubscriptionDraft):
    """
    A stored subscription.

    CRITICAL: id, owner and created_at are assigned by the store at
    creation and never change afterwards.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique subscription ID"
    )
    owner: str = Field(
        ...,
        min_length=1,
        description="Principal the subscription belongs to"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the subscription was first stored"
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    def replaced_with(self, draft: SubscriptionDraft) -> "Subscription":
        """
        Whole-record replace of the editable fields.

        Identity, owner and creation time are carried over.
        """
        return Subscription(
            **draft.model_dump(),
            id=self.id,
            owner=self.owner,
            created_at=self.created_at,
            updated_at=datetime.utcnow(),
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class FieldError(BaseModel):
    """A single invalid form field."""

    field: str = Field(
        ...,
        description="Form field with the issue"
    )
    error_type: ValidationErrorType
    message: str = Field(
        ...,
        description="Human-readable description, shown next to the input"
    )


class SubscriptionValidationResult(BaseModel):
    """
    Outcome of validating one raw form submission.

    Exactly one of `subscription` / `errors` is meaningful:
    a valid result carries the normalized draft, an invalid one
    carries one error per offending field.
    """

    is_valid: bool
    subscription: Optional[SubscriptionDraft] = None
    errors: dict[str, FieldError] = Field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def messages(self) -> dict[str, str]:
        """Field name → message, for rendering next to form inputs."""
        return {name: error.message for name, error in self.errors.items()}


# =============================================================================
# AGGREGATE MODELS
# =============================================================================

class SpendSummary(BaseModel):
    """
    Normalized spend across a set of subscriptions.

    Values are exact. Rounding to display precision is done with
    `rounded()` by the presentation layer only.
    """

    total_monthly: Decimal = Field(default=Decimal("0"), ge=0)
    total_yearly: Decimal = Field(default=Decimal("0"), ge=0)
    subscription_count: int = Field(default=0, ge=0)

    def rounded(self, places: int = 0) -> tuple[Decimal, Decimal]:
        """Totals rounded half-up to `places` decimal places."""
        quantum = Decimal(1).scaleb(-places)
        return (
            self.total_monthly.quantize(quantum, rounding=ROUND_HALF_UP),
            self.total_yearly.quantize(quantum, rounding=ROUND_HALF_UP),
        )
