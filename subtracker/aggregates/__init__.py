"""Spend aggregation package."""

from subtracker.aggregates.calculator import (
    calculate_totals,
    is_nearing_renewal,
    totals_by_category,
    upcoming_renewals,
)

__all__ = [
    "calculate_totals",
    "is_nearing_renewal",
    "totals_by_category",
    "upcoming_renewals",
]
