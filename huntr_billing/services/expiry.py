"""Countdown helper for payment request expiry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from huntr_billing.utils.datetime import ensure_utc


@dataclass(frozen=True, slots=True)
class Remaining:
    minutes: int
    seconds: int
    expired: bool


def remaining(expires_at: datetime, now: datetime) -> Remaining:
    """Time left until ``expires_at`` as whole minutes and seconds.

    ``expired`` flips exactly when ``now >= expires_at``; from then on both
    counters stay at zero.
    """

    expires_at = ensure_utc(expires_at)
    now = ensure_utc(now)
    if now >= expires_at:
        return Remaining(minutes=0, seconds=0, expired=True)
    minutes, seconds = divmod(int((expires_at - now).total_seconds()), 60)
    return Remaining(minutes=minutes, seconds=seconds, expired=False)


__all__ = ["Remaining", "remaining"]
