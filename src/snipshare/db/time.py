# src/snipshare/db/time.py
"""Time utilities for database models.

Timestamps are persisted as integer milliseconds since the Unix epoch so that
expiry comparisons behave identically on SQLite and Postgres.
"""

import time
from datetime import UTC, datetime

MS_PER_SECOND = 1000
MS_PER_MINUTE = 60 * MS_PER_SECOND
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR


def now_ms() -> int:
    """Return the current time in epoch milliseconds."""
    return int(time.time() * MS_PER_SECOND)


def ms_to_iso(value: int | None) -> str | None:
    """Render an epoch-millisecond timestamp as an ISO 8601 UTC string."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / MS_PER_SECOND, UTC).isoformat()
