"""
Core Utilities

Shared helpers used across the application.
"""
from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """
    Return timezone-aware UTC datetime.

    Use this instead of datetime.utcnow() which returns naive datetime.
    """
    return datetime.now(timezone.utc)


def today() -> date:
    """Local calendar date, used for the booking date check."""
    return date.today()
