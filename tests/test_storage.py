"""
Tests for storage implementations.

The Google Sheets store is exercised against a mocked worksheet;
no real API calls are made.
"""

import asyncio
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock
from uuid import uuid4

import pytest

from subtracker.models.audit import AuditEventBuilder
from subtracker.models.subscription import (
    BillingCycle,
    Subscription,
    SubscriptionDraft,
)
from subtracker.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsSubscriptionStorage,
    InMemoryAuditStorage,
    InMemorySubscriptionStorage,
    NotFoundError,
    StoreRejectedError,
    StoreUnavailableError,
)
from subtracker.services.storage.google_sheets import (
    AUDIT_COLUMNS,
    SUBSCRIPTION_COLUMNS,
)


def make_draft(**overrides) -> SubscriptionDraft:
    fields = dict(
        service_name="Spotify",
        price=Decimal("980"),
        billing_cycle=BillingCycle.MONTHLY,
        next_billing_date=date(2024, 12, 20),
        category="Music",
    )
    fields.update(overrides)
    return SubscriptionDraft(**fields)


def make_subscription(owner: str = "alice", **overrides) -> Subscription:
    return Subscription(
        **make_draft(**overrides).model_dump(),
        owner=owner,
        created_at=datetime(2024, 1, 1, 9, 0),
        updated_at=datetime(2024, 1, 1, 9, 0),
    )


class TestInMemorySubscriptionStorage:
    """Tests for the dict-backed store."""

    def test_insert_assigns_identity(self):
        storage = InMemorySubscriptionStorage()
        stored = asyncio.run(storage.insert_subscription("alice", make_draft()))

        assert stored.owner == "alice"
        assert stored.created_at == stored.updated_at
        assert asyncio.run(storage.get_subscription(stored.id)) == stored

    def test_list_is_per_owner_and_ordered(self):
        storage = InMemorySubscriptionStorage()
        asyncio.run(storage.insert_subscription(
            "alice", make_draft(service_name="late", next_billing_date=date(2025, 3, 1))
        ))
        asyncio.run(storage.insert_subscription(
            "alice", make_draft(service_name="early", next_billing_date=date(2024, 6, 1))
        ))
        asyncio.run(storage.insert_subscription("bob", make_draft()))

        listed = asyncio.run(storage.list_subscriptions("alice"))

        assert [s.service_name for s in listed] == ["early", "late"]
        assert all(s.owner == "alice" for s in listed)

    def test_update_replaces_whole_record(self):
        storage = InMemorySubscriptionStorage()
        stored = asyncio.run(storage.insert_subscription(
            "alice", make_draft(notes="old note", service_url="https://spotify.com")
        ))

        updated = asyncio.run(storage.update_subscription(
            stored.id, make_draft(price=Decimal("1080"))
        ))

        assert updated.id == stored.id
        assert updated.owner == "alice"
        assert updated.created_at == stored.created_at
        assert updated.price == Decimal("1080")
        # whole-record replace: omitted optionals are cleared
        assert updated.notes is None
        assert updated.service_url is None

    def test_update_missing_raises(self):
        storage = InMemorySubscriptionStorage()
        with pytest.raises(NotFoundError):
            asyncio.run(storage.update_subscription(uuid4(), make_draft()))

    def test_delete(self):
        storage = InMemorySubscriptionStorage()
        stored = asyncio.run(storage.insert_subscription("alice", make_draft()))

        assert asyncio.run(storage.delete_subscription(stored.id)) is True
        assert asyncio.run(storage.delete_subscription(stored.id)) is False
        assert asyncio.run(storage.list_subscriptions("alice")) == []


class TestInMemoryAuditStorage:
    """Tests for the in-memory audit log."""

    def test_correlation_lookup(self):
        storage = InMemoryAuditStorage()
        correlation_id = uuid4()
        asyncio.run(storage.append_event(
            AuditEventBuilder.subscription_deleted(uuid4(), correlation_id)
        ))
        asyncio.run(storage.append_event(
            AuditEventBuilder.subscription_deleted(uuid4(), uuid4())
        ))

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert len(events) == 1
        assert len(asyncio.run(storage.get_recent_events(limit=10))) == 2


@pytest.fixture
def sheet() -> MagicMock:
    return MagicMock()


@pytest.fixture
def sheets_storage(sheet) -> GoogleSheetsSubscriptionStorage:
    client = MagicMock()
    client.get_subscriptions_sheet.return_value = sheet
    return GoogleSheetsSubscriptionStorage(client=client)


class TestGoogleSheetsSubscriptionStorage:
    """Tests for the Google Sheets store with a mocked worksheet."""

    def test_row_conversion(self, sheets_storage):
        """Test a subscription survives row serialization exactly."""
        subscription = make_subscription(
            price=Decimal("9.99"),
            billing_cycle=BillingCycle.YEARLY,
            service_url="https://spotify.com",
        )

        row = sheets_storage._subscription_to_row(subscription)

        assert len(row) == len(SUBSCRIPTION_COLUMNS)
        assert row[3] == "9.99"
        assert row[4] == "yearly"
        assert row[8] == ""  # notes absent
        assert sheets_storage._row_to_subscription(row) == subscription

    def test_list_filters_owner_and_skips_bad_rows(self, sheets_storage, sheet):
        alice_late = make_subscription(next_billing_date=date(2025, 1, 1))
        alice_early = make_subscription(next_billing_date=date(2024, 1, 1))
        bob = make_subscription(owner="bob")
        broken = sheets_storage._subscription_to_row(make_subscription())
        broken[3] = "not a price"

        sheet.get_all_values.return_value = [
            SUBSCRIPTION_COLUMNS,
            sheets_storage._subscription_to_row(alice_late),
            [],
            sheets_storage._subscription_to_row(bob),
            broken,
            sheets_storage._subscription_to_row(alice_early),
        ]

        listed = asyncio.run(sheets_storage.list_subscriptions("alice"))

        assert listed == [alice_early, alice_late]

    def test_insert_appends_row(self, sheets_storage, sheet):
        stored = asyncio.run(sheets_storage.insert_subscription("alice", make_draft()))

        sheet.append_row.assert_called_once()
        row = sheet.append_row.call_args.args[0]
        assert row[0] == str(stored.id)
        assert row[1] == "alice"

    def test_insert_failure_is_not_retried(self, sheets_storage, sheet):
        sheet.append_row.side_effect = RuntimeError("network down")

        with pytest.raises(StoreUnavailableError):
            asyncio.run(sheets_storage.insert_subscription("alice", make_draft()))

        assert sheet.append_row.call_count == 1

    def test_update_rewrites_row(self, sheets_storage, sheet):
        existing = make_subscription()
        sheet.get_all_values.return_value = [
            SUBSCRIPTION_COLUMNS,
            sheets_storage._subscription_to_row(make_subscription(owner="bob")),
            sheets_storage._subscription_to_row(existing),
        ]

        updated = asyncio.run(sheets_storage.update_subscription(
            existing.id, make_draft(price=Decimal("1080"))
        ))

        assert updated.id == existing.id
        assert updated.created_at == existing.created_at
        assert updated.price == Decimal("1080")
        sheet.batch_update.assert_called_once()
        (request,), _ = sheet.batch_update.call_args
        assert request[0]["range"] == "A3:K3"
        assert request[0]["values"][0][3] == "1080"

    def test_update_missing_raises_not_found(self, sheets_storage, sheet):
        sheet.get_all_values.return_value = [SUBSCRIPTION_COLUMNS]

        with pytest.raises(NotFoundError):
            asyncio.run(sheets_storage.update_subscription(uuid4(), make_draft()))

        sheet.batch_update.assert_not_called()

    def test_malformed_row_is_a_store_error(self, sheets_storage, sheet):
        """Test a row that cannot be parsed surfaces as StoreRejectedError."""
        existing = make_subscription()
        broken = sheets_storage._subscription_to_row(existing)
        broken[4] = "weekly"
        sheet.get_all_values.return_value = [SUBSCRIPTION_COLUMNS, broken]

        with pytest.raises(StoreRejectedError, match="malformed row"):
            asyncio.run(sheets_storage.get_subscription(existing.id))
        with pytest.raises(StoreRejectedError, match="malformed row"):
            asyncio.run(sheets_storage.update_subscription(existing.id, make_draft()))

        sheet.batch_update.assert_not_called()

    def test_delete(self, sheets_storage, sheet):
        existing = make_subscription()
        sheet.get_all_values.return_value = [
            SUBSCRIPTION_COLUMNS,
            sheets_storage._subscription_to_row(existing),
        ]

        assert asyncio.run(sheets_storage.delete_subscription(existing.id)) is True
        sheet.delete_rows.assert_called_once_with(2)

        assert asyncio.run(sheets_storage.delete_subscription(uuid4())) is False


class TestGoogleSheetsAuditStorage:
    """Tests for the Google Sheets audit log."""

    def test_event_round_trip(self):
        sheet = MagicMock()
        client = MagicMock()
        client.get_audit_sheet.return_value = sheet
        storage = GoogleSheetsAuditStorage(client=client)

        correlation_id = uuid4()
        event = AuditEventBuilder.validation_failed(
            errors={"price": "Enter a number of 0 or more"},
            correlation_id=correlation_id,
        )
        asyncio.run(storage.append_event(event))
        row = sheet.append_row.call_args.args[0]
        assert len(row) == len(AUDIT_COLUMNS)

        sheet.get_all_values.return_value = [AUDIT_COLUMNS, row]
        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))

        assert events == [event]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
