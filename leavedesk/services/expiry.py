"""Grace-period rules for soft-deleted leave requests.

Shared by the restore transition and the purge worker. ``now`` is always
passed in by the caller.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

GRACE_PERIOD_DAYS = 7
GRACE_PERIOD = timedelta(days=GRACE_PERIOD_DAYS)

_SECONDS_PER_DAY = 86400


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def expires_at(deleted_at: datetime) -> datetime:
    """Return the last instant at which a deleted request can be restored."""
    return as_utc(deleted_at) + GRACE_PERIOD


def is_expired(deleted_at: datetime, now: datetime) -> bool:
    """Return whether the grace period has elapsed. The boundary instant itself is not expired."""
    return as_utc(now) > expires_at(deleted_at)


def remaining_days(deleted_at: datetime, now: datetime) -> int:
    """Whole days left before expiry, rounded up. Zero or negative once expired."""
    elapsed_days = (as_utc(now) - as_utc(deleted_at)).total_seconds() / _SECONDS_PER_DAY
    return math.ceil(GRACE_PERIOD_DAYS - elapsed_days)


def purge_cutoff(now: datetime) -> datetime:
    """Requests deleted strictly before this instant are expired."""
    return as_utc(now) - GRACE_PERIOD
