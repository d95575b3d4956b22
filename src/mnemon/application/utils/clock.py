"""Date and rounding helpers shared by the scheduling components.

Every component receives ``now`` from its caller; nothing here reads the
wall clock.
"""

import math
from datetime import date, datetime, timedelta

from mnemon.domain.errors import InvalidInput

SECONDS_PER_DAY = 86400


def require_aware(moment: datetime, name: str = "now") -> datetime:
    """Reject naive datetimes so calendar-day arithmetic is unambiguous."""
    if not isinstance(moment, datetime):
        raise InvalidInput(f"{name} must be a datetime, got {type(moment).__name__}")
    if moment.tzinfo is None or moment.utcoffset() is None:
        raise InvalidInput(f"{name} must be timezone-aware")
    return moment


def local_day(moment: datetime, reference: datetime) -> date:
    """Calendar day of ``moment`` as seen in ``reference``'s timezone."""
    return moment.astimezone(reference.tzinfo).date()


def add_days(moment: datetime, days: int) -> datetime:
    return moment + timedelta(days=days)


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Whole days elapsed from ``earlier`` to ``later``, floored; 0 if not positive."""
    seconds = (later - earlier).total_seconds()
    return max(0, math.floor(seconds / SECONDS_PER_DAY))


def round_half_up(value: float) -> int:
    # round() uses banker's rounding; intervals and hours round .5 up
    return math.floor(value + 0.5)
