"""
Subscription Tracker - Source Package

A personal subscription-expense tracker: record recurring subscriptions
and see what they cost per month and per year.

DESIGN PRINCIPLES:
1. Raw form input is parsed once, at the validator boundary
2. Totals are always re-derived, never cached
3. No silent corrections
4. Every write is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Subscription Tracker Team"
