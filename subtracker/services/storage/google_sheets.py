"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the storage backend because:
1. Users can view and export their subscriptions directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (fine for personal subscriptions)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter and sort in Python)

Store calls are NOT retried. A failed write surfaces to the user, who
resubmits. Only establishing the connection is retried.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import gspread
from google.oauth2.service_account import Credentials
from gspread.utils import rowcol_to_a1
from tenacity import retry, stop_after_attempt, wait_exponential

from subtracker.config import GoogleSheetsSettings, get_settings
from subtracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from subtracker.models.subscription import (
    BillingCycle,
    Subscription,
    SubscriptionDraft,
)
from subtracker.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    StorageError,
    StoreRejectedError,
    StoreUnavailableError,
    SubscriptionStorageInterface,
)


# Column mappings for Subscriptions sheet
SUBSCRIPTION_COLUMNS = [
    "id",
    "owner",
    "service_name",
    "price",
    "billing_cycle",
    "next_billing_date",
    "category",
    "service_url",
    "notes",
    "created_at",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "owner",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise StoreUnavailableError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StoreUnavailableError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise StoreUnavailableError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_subscriptions_sheet(self) -> gspread.Worksheet:
        """Get or create the Subscriptions worksheet."""
        return self._get_or_create_sheet(
            self._settings.subscriptions_sheet_name,
            SUBSCRIPTION_COLUMNS,
            rows=1000,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


def _storage_error(operation: str, error: Exception) -> StorageError:
    """Map a backend exception onto the store error taxonomy."""
    if isinstance(error, StorageError):
        return error
    if isinstance(error, gspread.exceptions.APIError):
        return StoreRejectedError(f"Failed to {operation}: {error}")
    if isinstance(error, (ValueError, ArithmeticError)):
        # Row exists but cannot be read back as a Subscription
        return StoreRejectedError(f"Failed to {operation}: malformed row: {error}")
    return StoreUnavailableError(f"Failed to {operation}: {error}")


class GoogleSheetsSubscriptionStorage(SubscriptionStorageInterface):
    """
    Google Sheets implementation of subscription storage.

    One subscription per row. Prices are stored as decimal text so
    they round-trip exactly.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _subscription_to_row(self, subscription: Subscription) -> list:
        """Convert a Subscription to a spreadsheet row."""
        return [
            str(subscription.id),
            subscription.owner,
            subscription.service_name,
            str(subscription.price),
            subscription.billing_cycle.value,
            subscription.next_billing_date.isoformat(),
            subscription.category,
            subscription.service_url or "",
            subscription.notes or "",
            subscription.created_at.isoformat(),
            subscription.updated_at.isoformat(),
        ]

    def _row_to_subscription(self, row: list) -> Subscription:
        """Convert a spreadsheet row to a Subscription."""
        # Handle missing columns gracefully
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Subscription(
            id=UUID(safe_get(0)),
            owner=safe_get(1),
            service_name=safe_get(2),
            price=Decimal(safe_get(3)),
            billing_cycle=BillingCycle(safe_get(4)),
            next_billing_date=date.fromisoformat(safe_get(5)),
            category=safe_get(6),
            service_url=safe_get(7) or None,
            notes=safe_get(8) or None,
            created_at=datetime.fromisoformat(safe_get(9)),
            updated_at=datetime.fromisoformat(safe_get(10)),
        )

    def _find_row(
        self,
        all_rows: list[list],
        subscription_id: UUID,
    ) -> Optional[int]:
        """1-based sheet row index of a subscription (row 1 is the header)."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == str(subscription_id):
                return idx
        return None

    async def list_subscriptions(self, owner: str) -> list[Subscription]:
        """List one owner's subscriptions, soonest billing first."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except Exception as e:
            raise _storage_error("list subscriptions", e)

        subscriptions = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if len(row) < 2 or row[1] != owner:
                continue
            try:
                subscriptions.append(self._row_to_subscription(row))
            except (ValueError, ArithmeticError):
                continue  # Skip malformed rows

        subscriptions.sort(key=lambda s: s.next_billing_date)
        return subscriptions

    async def get_subscription(
        self,
        subscription_id: UUID,
    ) -> Optional[Subscription]:
        """Retrieve a subscription by its ID."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()
        except Exception as e:
            raise _storage_error("get subscription", e)

        idx = self._find_row(all_rows, subscription_id)
        if idx is None:
            return None
        try:
            return self._row_to_subscription(all_rows[idx - 1])
        except (ValueError, ArithmeticError) as e:
            raise _storage_error("get subscription", e)

    async def insert_subscription(
        self,
        owner: str,
        draft: SubscriptionDraft,
    ) -> Subscription:
        """Append a new subscription row."""
        now = datetime.utcnow()
        subscription = Subscription(
            **draft.model_dump(),
            id=uuid4(),
            owner=owner,
            created_at=now,
            updated_at=now,
        )
        try:
            sheet = self._client.get_subscriptions_sheet()
            sheet.append_row(
                self._subscription_to_row(subscription),
                value_input_option="RAW",
            )
        except Exception as e:
            raise _storage_error("save subscription", e)
        return subscription

    async def update_subscription(
        self,
        subscription_id: UUID,
        draft: SubscriptionDraft,
    ) -> Subscription:
        """Rewrite the whole row of an existing subscription."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_row(all_rows, subscription_id)
            if idx is None:
                raise NotFoundError(f"Subscription not found: {subscription_id}")

            existing = self._row_to_subscription(all_rows[idx - 1])
            updated = existing.replaced_with(draft)
            new_row = self._subscription_to_row(updated)

            cell_range = (
                f"{rowcol_to_a1(idx, 1)}:{rowcol_to_a1(idx, len(new_row))}"
            )
            sheet.batch_update(
                [{"range": cell_range, "values": [new_row]}],
                value_input_option="RAW",
            )
            return updated
        except Exception as e:
            raise _storage_error("update subscription", e)

    async def delete_subscription(self, subscription_id: UUID) -> bool:
        """Delete a subscription row by ID."""
        try:
            sheet = self._client.get_subscriptions_sheet()
            all_rows = sheet.get_all_values()

            idx = self._find_row(all_rows, subscription_id)
            if idx is None:
                return False

            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise _storage_error("delete subscription", e)


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            owner=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            correlation_id=UUID(safe_get(6)) if safe_get(6) else None,
            description=safe_get(7),
            details=json.loads(safe_get(8)) if safe_get(8) else {},
            error_message=safe_get(9) or None,
            is_user_action=safe_get(10).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise _storage_error("write audit event", e)

    def _all_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            all_rows = sheet.get_all_values()[1:]
        except Exception as e:
            raise _storage_error("read audit events", e)

        events = []
        for row in all_rows:
            if row and row[0]:
                try:
                    events.append(self._row_to_event(row))
                except ValueError:
                    continue
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [
            e for e in self._all_events() if e.correlation_id == correlation_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._all_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
