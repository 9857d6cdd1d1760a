"""Tests for the subscription form validator."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from subtracker.models.subscription import (
    MAX_PRICE,
    BillingCycle,
    Subscription,
    ValidationErrorType,
)
from subtracker.validation import FORM_FIELDS, SubscriptionValidator, describe_changes


def make_raw(**overrides) -> dict[str, str]:
    raw = {
        "service_name": "Netflix",
        "price": "1490",
        "billing_cycle": "monthly",
        "next_billing_date": "2024-12-15",
        "category": "Video",
        "service_url": "",
        "notes": "",
    }
    raw.update(overrides)
    return raw


@pytest.fixture
def validator() -> SubscriptionValidator:
    return SubscriptionValidator()


class TestValidInput:
    """Submissions that should pass."""

    def test_valid_submission(self, validator):
        """Test a complete submission yields a typed draft."""
        result = validator.validate(make_raw(price="12.50"))

        assert result.is_valid is True
        assert result.errors == {}
        draft = result.subscription
        assert draft.service_name == "Netflix"
        assert draft.price == Decimal("12.50")
        assert draft.billing_cycle == BillingCycle.MONTHLY
        assert draft.next_billing_date == date(2024, 12, 15)
        assert draft.category == "Video"

    def test_blank_optionals_are_absent(self, validator):
        """Test empty url/notes become None."""
        result = validator.validate(make_raw(service_url="", notes=""))
        assert result.subscription.service_url is None
        assert result.subscription.notes is None

    def test_filled_optionals_are_kept(self, validator):
        """Test url and notes survive as given."""
        result = validator.validate(make_raw(
            service_url="https://www.netflix.com/account",
            notes="shared with family",
        ))
        assert result.subscription.service_url == "https://www.netflix.com/account"
        assert result.subscription.notes == "shared with family"

    def test_zero_price_is_valid(self, validator):
        """Test price = 0 is accepted."""
        result = validator.validate(make_raw(price="0"))
        assert result.is_valid is True
        assert result.subscription.price == Decimal("0")

    def test_negative_zero_is_normalized(self, validator):
        """Test "-0" is accepted as zero."""
        result = validator.validate(make_raw(price="-0"))
        assert result.is_valid is True
        assert result.subscription.price == Decimal("0")
        assert not result.subscription.price.is_signed()

    def test_yearly_cycle(self, validator):
        result = validator.validate(make_raw(billing_cycle="yearly"))
        assert result.subscription.billing_cycle == BillingCycle.YEARLY

    def test_past_billing_date_is_accepted(self, validator):
        """Test no future-date check is made."""
        result = validator.validate(make_raw(next_billing_date="2001-01-01"))
        assert result.is_valid is True

    def test_category_outside_suggested_set(self, validator):
        """Test categories are not restricted to the offered list."""
        result = validator.validate(make_raw(category="Cloud storage"))
        assert result.subscription.category == "Cloud storage"

    def test_long_free_text_is_accepted(self, validator):
        """Test long names and categories give a result, not an exception."""
        result = validator.validate(make_raw(service_name="x" * 201, category="c" * 101))

        assert result.is_valid is True
        assert result.subscription.service_name == "x" * 201
        assert result.subscription.category == "c" * 101

    def test_notes_whitespace_is_kept(self, validator):
        """Test notes are stored exactly as typed."""
        result = validator.validate(make_raw(notes="  call before renewing  "))
        assert result.subscription.notes == "  call before renewing  "

        result = validator.validate(make_raw(notes="   "))
        assert result.subscription.notes == "   "

    def test_largest_price_is_accepted(self, validator):
        result = validator.validate(make_raw(price=str(MAX_PRICE)))
        assert result.is_valid is True


class TestInvalidInput:
    """Submissions that should be rejected."""

    @pytest.mark.parametrize("field", [
        "service_name",
        "price",
        "next_billing_date",
        "category",
    ])
    def test_missing_required_field(self, validator, field):
        """Test an empty required field is reported, and only that field."""
        result = validator.validate(make_raw(**{field: ""}))

        assert result.is_valid is False
        assert result.subscription is None
        assert set(result.errors) == {field}
        assert result.errors[field].error_type == ValidationErrorType.REQUIRED_FIELD_MISSING

    def test_whitespace_service_name_is_missing(self, validator):
        result = validator.validate(make_raw(service_name="   "))
        assert result.errors["service_name"].error_type == ValidationErrorType.REQUIRED_FIELD_MISSING

    @pytest.mark.parametrize("price", ["-5", "abc", "NaN", "Infinity", "12,50", "1_000"])
    def test_invalid_price(self, validator, price):
        """Test non-numbers and negatives are rejected."""
        result = validator.validate(make_raw(price=price))
        assert set(result.errors) == {"price"}
        assert result.errors["price"].error_type == ValidationErrorType.INVALID_NUMBER

    @pytest.mark.parametrize("price", ["9e999999", "1000000000000001"])
    def test_price_above_limit(self, validator, price):
        """Test amounts too large to total are rejected."""
        result = validator.validate(make_raw(price=price))

        assert result.is_valid is False
        assert result.errors["price"].error_type == ValidationErrorType.INVALID_NUMBER
        assert "no larger than" in result.errors["price"].message

    @pytest.mark.parametrize("cycle", ["weekly", "Monthly", "", " yearly"])
    def test_invalid_billing_cycle(self, validator, cycle):
        """Test only exactly monthly/yearly are accepted."""
        result = validator.validate(make_raw(billing_cycle=cycle))
        assert set(result.errors) == {"billing_cycle"}
        assert result.errors["billing_cycle"].error_type == ValidationErrorType.INVALID_ENUM

    def test_invalid_url(self, validator):
        result = validator.validate(make_raw(service_url="not-a-url"))
        assert set(result.errors) == {"service_url"}
        assert result.errors["service_url"].error_type == ValidationErrorType.INVALID_URL

    def test_unparseable_date(self, validator):
        result = validator.validate(make_raw(next_billing_date="2024-13-01"))
        assert set(result.errors) == {"next_billing_date"}
        assert result.errors["next_billing_date"].error_type == ValidationErrorType.INVALID_DATE

    def test_all_violations_reported_together(self, validator):
        """Test no short-circuit across fields."""
        result = validator.validate(make_raw(
            service_name="",
            price="abc",
            billing_cycle="weekly",
            service_url="nope",
        ))
        assert set(result.errors) == {
            "service_name",
            "price",
            "billing_cycle",
            "service_url",
        }

    def test_empty_mapping(self, validator):
        """Test missing keys count as empty text and never raise."""
        result = validator.validate({})
        assert result.is_valid is False
        assert set(result.errors) == {
            "service_name",
            "price",
            "billing_cycle",
            "next_billing_date",
            "category",
        }

    def test_none_values_count_as_empty(self, validator):
        result = validator.validate(make_raw(category=None, notes=None))
        assert set(result.errors) == {"category"}

    def test_messages_are_human_readable(self, validator):
        result = validator.validate(make_raw(price="-5"))
        assert result.errors["price"].field == "price"
        assert result.messages()["price"] == "Enter a number of 0 or more"


class TestValidatorIsPure:
    """Repeated validation gives identical verdicts."""

    def test_idempotent(self, validator):
        raw = make_raw(price="abc")
        assert validator.validate(raw) == validator.validate(raw)

    def test_input_not_mutated(self, validator):
        raw = make_raw()
        snapshot = dict(raw)
        validator.validate(raw)
        assert raw == snapshot


class TestFormConversion:
    """Tests for to_form and describe_changes."""

    def test_to_form_round_trip(self, validator):
        """Test a stored subscription pre-fills a form that validates back."""
        subscription = Subscription(
            **validator.validate(make_raw(
                price="980.50",
                billing_cycle="yearly",
                service_url="https://music.example.com",
            )).subscription.model_dump(),
            owner="alice",
        )

        form = validator.to_form(subscription)

        assert set(form) == set(FORM_FIELDS)
        assert form["price"] == "980.50"
        assert form["next_billing_date"] == "2024-12-15"
        assert form["notes"] == ""
        assert validator.validate(form).subscription == subscription.draft()

    def test_describe_changes(self, validator):
        before = Subscription(
            **validator.validate(make_raw()).subscription.model_dump(),
            owner="alice",
            created_at=datetime(2024, 1, 1),
        )
        after = validator.validate(make_raw(price="1980", notes="premium")).subscription

        assert describe_changes(before, after) == ["price", "notes"]

    def test_user_friendly_summary(self, validator):
        ok = validator.get_user_friendly_summary(validator.validate(make_raw()))
        assert ok.startswith("✅")

        bad = validator.get_user_friendly_summary(
            validator.validate(make_raw(price="abc", category=""))
        )
        assert "2 field(s)" in bad
        assert "Price: Enter a number of 0 or more" in bad
        assert "Category: This field is required" in bad


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
