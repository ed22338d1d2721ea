"""Shared, deterministic timestamps for tests."""

from datetime import UTC, datetime, timedelta


# Fixed reference time so freshness scores are identical across environments.
FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=UTC)


def days_ago(days: float) -> datetime:
    """Timestamp the given number of days before FIXED_NOW."""
    return FIXED_NOW - timedelta(days=days)
