"""
Spend Aggregation

DESIGN DECISION: Totals are DERIVED, never stored.
Callers pass in the current collection every time it changes and get
fresh numbers back. Nothing here keeps state between calls.

Normalization: a monthly charge counts x12 towards the yearly total, a
yearly charge counts /12 towards the monthly total.

Each cadence is summed exactly first and converted once at the end.
Decimal addition of prices is exact, so the result does not depend on
the order of the input, and no rounding happens inside the fold.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Protocol

from subtracker.models.subscription import (
    BillingCycle,
    SpendSummary,
    SubscriptionDraft,
)


MONTHS_PER_YEAR = Decimal(12)


class Billable(Protocol):
    price: Decimal
    billing_cycle: BillingCycle


def calculate_totals(subscriptions: Iterable[Billable]) -> SpendSummary:
    """
    Normalized monthly and yearly totals.

    Empty input gives (0, 0). A zero price contributes nothing.
    """
    monthly_sum = Decimal("0")
    yearly_sum = Decimal("0")
    count = 0

    for subscription in subscriptions:
        if subscription.billing_cycle == BillingCycle.MONTHLY:
            monthly_sum += subscription.price
        else:
            yearly_sum += subscription.price
        count += 1

    return SpendSummary(
        total_monthly=monthly_sum + yearly_sum / MONTHS_PER_YEAR,
        total_yearly=monthly_sum * MONTHS_PER_YEAR + yearly_sum,
        subscription_count=count,
    )


def totals_by_category(
    subscriptions: Iterable[SubscriptionDraft],
) -> dict[str, SpendSummary]:
    """Normalized totals per category, categories sorted by name."""
    groups: dict[str, list[SubscriptionDraft]] = defaultdict(list)
    for subscription in subscriptions:
        groups[subscription.category].append(subscription)

    return {
        category: calculate_totals(groups[category])
        for category in sorted(groups)
    }


def is_nearing_renewal(
    subscription: SubscriptionDraft,
    today: date,
    window_days: int = 7,
) -> bool:
    """
    True when the next charge is less than `window_days` away.

    Overdue dates (already in the past) count as nearing renewal.
    """
    return (subscription.next_billing_date - today).days < window_days


def upcoming_renewals(
    subscriptions: Iterable[SubscriptionDraft],
    today: date,
    window_days: int = 7,
) -> list[SubscriptionDraft]:
    """Subscriptions nearing renewal, soonest first."""
    due = [
        subscription
        for subscription in subscriptions
        if is_nearing_renewal(subscription, today, window_days)
    ]
    due.sort(key=lambda s: s.next_billing_date)
    return due
