"""Countdown behaviour of the expiry helper."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from huntr_billing.services.expiry import Remaining, remaining

EXPIRES_AT = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def test_remaining_floors_minutes_and_seconds():
    now = EXPIRES_AT - timedelta(minutes=12, seconds=5, milliseconds=700)
    assert remaining(EXPIRES_AT, now) == Remaining(minutes=12, seconds=5, expired=False)


def test_expired_exactly_at_deadline():
    assert remaining(EXPIRES_AT, EXPIRES_AT) == Remaining(minutes=0, seconds=0, expired=True)
    just_before = EXPIRES_AT - timedelta(milliseconds=1)
    assert remaining(EXPIRES_AT, just_before).expired is False


def test_clamped_to_zero_after_expiry():
    later = EXPIRES_AT + timedelta(hours=3)
    result = remaining(EXPIRES_AT, later)
    assert result == Remaining(minutes=0, seconds=0, expired=True)


def test_monotonically_non_increasing():
    start = EXPIRES_AT - timedelta(minutes=2)
    previous = None
    for step in range(0, 200, 7):
        current = remaining(EXPIRES_AT, start + timedelta(seconds=step))
        total = current.minutes * 60 + current.seconds
        assert total >= 0
        if previous is not None:
            assert total <= previous
        previous = total


def test_naive_timestamps_are_treated_as_utc():
    naive_expiry = EXPIRES_AT.replace(tzinfo=None)
    now = EXPIRES_AT - timedelta(seconds=90)
    assert remaining(naive_expiry, now) == Remaining(minutes=1, seconds=30, expired=False)
