from __future__ import annotations

from datetime import UTC, datetime, timedelta

from leavedesk.services.expiry import (
    GRACE_PERIOD_DAYS,
    as_utc,
    expires_at,
    is_expired,
    purge_cutoff,
    remaining_days,
)

T0 = datetime(2025, 3, 10, 9, 0, tzinfo=UTC)


def test_grace_period_is_seven_days() -> None:
    assert GRACE_PERIOD_DAYS == 7
    assert expires_at(T0) == T0 + timedelta(days=7)


def test_not_expired_inside_window() -> None:
    assert not is_expired(T0, T0)
    assert not is_expired(T0, T0 + timedelta(days=3))


def test_boundary_instant_is_not_expired() -> None:
    assert not is_expired(T0, T0 + timedelta(days=7))
    assert is_expired(T0, T0 + timedelta(days=7, microseconds=1))


def test_expired_after_eight_days() -> None:
    assert is_expired(T0, T0 + timedelta(days=8))


def test_naive_datetimes_are_treated_as_utc() -> None:
    naive = T0.replace(tzinfo=None)
    assert as_utc(naive) == T0
    assert not is_expired(naive, T0 + timedelta(days=6))
    assert is_expired(naive, T0 + timedelta(days=8))


def test_remaining_days_rounds_up() -> None:
    assert remaining_days(T0, T0) == 7
    assert remaining_days(T0, T0 + timedelta(hours=1)) == 7
    assert remaining_days(T0, T0 + timedelta(days=3)) == 4
    assert remaining_days(T0, T0 + timedelta(days=6, hours=23)) == 1
    assert remaining_days(T0, T0 + timedelta(days=7)) == 0


def test_remaining_days_negative_once_expired() -> None:
    assert remaining_days(T0, T0 + timedelta(days=9)) < 0


def test_purge_cutoff() -> None:
    now = T0 + timedelta(days=10)
    assert purge_cutoff(now) == T0 + timedelta(days=3)
    assert purge_cutoff(now.replace(tzinfo=None)) == T0 + timedelta(days=3)
