"""Form validation package."""

from subtracker.validation.validator import (
    FORM_FIELDS,
    SubscriptionValidator,
    describe_changes,
)

__all__ = ["FORM_FIELDS", "SubscriptionValidator", "describe_changes"]
