"""
Subscription Form Validation

DESIGN DECISION: Every form field arrives as text, whatever its meaning.
This module is the one place where that untyped input is turned into a
typed SubscriptionDraft. Everything past this point works with the
typed model only.

RULES:
- Each field is checked independently
- All invalid fields are reported together (no short-circuit)
- Validation never raises for bad input; it returns a result
- Validation never touches storage or the network

IMPORTANT: Validation NEVER silently fixes issues beyond normalizing
blank optional fields to "absent".
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from subtracker.models.subscription import (
    BillingCycle,
    MAX_PRICE,
    FieldError,
    Subscription,
    SubscriptionDraft,
    SubscriptionValidationResult,
    ValidationErrorType,
    is_absolute_url,
)


FORM_FIELDS = (
    "service_name",
    "price",
    "billing_cycle",
    "next_billing_date",
    "category",
    "service_url",
    "notes",
)

REQUIRED_MESSAGE = "This field is required"
PRICE_MESSAGE = "Enter a number of 0 or more"
PRICE_TOO_LARGE_MESSAGE = f"Enter an amount no larger than {MAX_PRICE:,f}"


class SubscriptionValidator:
    """
    Validates raw subscription form input.

    Stateless: one instance can be shared by every caller.
    """

    def validate(
        self,
        raw: Mapping[str, Optional[str]],
    ) -> SubscriptionValidationResult:
        """
        Validate a raw form submission.

        Args:
            raw: Field name -> text as typed by the user. Missing keys
                 and None values count as empty text.

        Returns:
            A valid result carrying the normalized draft, or an invalid
            result with one FieldError per offending field.
        """
        values = {name: raw.get(name) or "" for name in FORM_FIELDS}
        errors: dict[str, FieldError] = {}

        def fail(name: str, error_type: ValidationErrorType, message: str) -> None:
            errors[name] = FieldError(field=name, error_type=error_type, message=message)

        if not values["service_name"].strip():
            fail("service_name", ValidationErrorType.REQUIRED_FIELD_MISSING, REQUIRED_MESSAGE)

        price = None
        if not values["price"].strip():
            fail("price", ValidationErrorType.REQUIRED_FIELD_MISSING, REQUIRED_MESSAGE)
        else:
            price = self._parse_price(values["price"])
            if price is None:
                fail("price", ValidationErrorType.INVALID_NUMBER, PRICE_MESSAGE)
            elif price > MAX_PRICE:
                price = None
                fail("price", ValidationErrorType.INVALID_NUMBER, PRICE_TOO_LARGE_MESSAGE)

        billing_cycle = None
        try:
            billing_cycle = BillingCycle(values["billing_cycle"])
        except ValueError:
            fail(
                "billing_cycle",
                ValidationErrorType.INVALID_ENUM,
                "Select a billing cycle (monthly or yearly)",
            )

        next_billing_date = None
        if not values["next_billing_date"].strip():
            fail("next_billing_date", ValidationErrorType.REQUIRED_FIELD_MISSING, REQUIRED_MESSAGE)
        else:
            try:
                next_billing_date = date.fromisoformat(values["next_billing_date"].strip())
            except ValueError:
                fail(
                    "next_billing_date",
                    ValidationErrorType.INVALID_DATE,
                    "Enter the date as YYYY-MM-DD",
                )

        if not values["category"].strip():
            fail("category", ValidationErrorType.REQUIRED_FIELD_MISSING, REQUIRED_MESSAGE)

        service_url = values["service_url"].strip()
        if service_url and not is_absolute_url(service_url):
            fail("service_url", ValidationErrorType.INVALID_URL, "Enter a valid URL")

        if errors:
            return SubscriptionValidationResult(is_valid=False, errors=errors)

        draft = SubscriptionDraft(
            service_name=values["service_name"],
            price=price,
            billing_cycle=billing_cycle,
            next_billing_date=next_billing_date,
            category=values["category"],
            service_url=service_url or None,
            notes=values["notes"] or None,
        )
        return SubscriptionValidationResult(is_valid=True, subscription=draft)

    @staticmethod
    def _parse_price(text: str) -> Optional[Decimal]:
        """Parse a non-negative finite amount, or return None."""
        text = text.strip()
        # Digit separators are not part of the accepted number syntax
        if "_" in text:
            return None
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None
        if not value.is_finite() or value < 0:
            return None
        # "-0" parses as negative zero
        return value.copy_abs() if value.is_zero() else value

    @staticmethod
    def to_form(subscription: SubscriptionDraft) -> dict[str, str]:
        """
        Turn a stored subscription back into raw form values.

        Used to pre-fill the edit form. Feeding the result straight back
        into validate() yields an equal draft.
        """
        return {
            "service_name": subscription.service_name,
            "price": format(subscription.price, "f"),
            "billing_cycle": subscription.billing_cycle.value,
            "next_billing_date": subscription.next_billing_date.isoformat(),
            "category": subscription.category,
            "service_url": subscription.service_url or "",
            "notes": subscription.notes or "",
        }

    def get_user_friendly_summary(
        self,
        result: SubscriptionValidationResult,
    ) -> str:
        """
        Generate a short summary of validation results.

        This is what the form shows above the inputs.
        """
        if result.is_valid:
            return "✅ All fields look good."

        lines = [f"❌ Please fix {result.error_count} field(s):"]
        for name, error in result.errors.items():
            label = name.replace("_", " ").capitalize()
            lines.append(f"   • {label}: {error.message}")
        return "\n".join(lines)


def describe_changes(
    before: Subscription,
    after: SubscriptionDraft,
) -> list[str]:
    """Names of the editable fields whose values differ."""
    return [
        name
        for name in SubscriptionDraft.model_fields
        if getattr(before, name) != getattr(after, name)
    ]
