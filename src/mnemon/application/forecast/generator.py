"""
Review forecast for the next N calendar days.

Counts how many cards fall due on each upcoming day and derives the
presentation fields the forecast panel shows: day labels, study time
estimates, heavy-day warnings and the weekly total.
"""

import dataclasses
import math
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from mnemon.application.utils.clock import local_day, require_aware, round_half_up
from mnemon.domain.cards.models import Card, ForecastDay
from mnemon.domain.constants import (
    DAY_LABELS,
    FORECAST_EMPTY_MESSAGE,
    HEAVY_DAY_THRESHOLD,
    MINUTES_PER_CARD,
    WEEKDAY_ABBREVIATIONS,
)
from mnemon.domain.errors import InvalidInput


@dataclass(frozen=True)
class Forecast:
    """Result of a forecast request."""

    days: list[ForecastDay]
    total: int  # Cards due across the whole window
    total_estimate: str  # Computed from total, not from the per-day strings
    heavy_days: int

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def empty_message(self) -> str | None:
        return FORECAST_EMPTY_MESSAGE if self.is_empty else None

    @property
    def heavy_days_summary(self) -> str | None:
        if self.heavy_days == 0:
            return None
        noun = "day" if self.heavy_days == 1 else "days"
        return f"{self.heavy_days} heavy review {noun}"

    @property
    def planning_tip(self) -> str | None:
        if self.heavy_days == 0:
            return None
        if self.heavy_days == 1:
            return (
                "You have 1 heavy review day coming up. "
                "Consider spreading out your study sessions."
            )
        return f"You have {self.heavy_days} heavy review days. Plan extra study time this week."


def day_label(day_date: date, index: int) -> str:
    """Today, Tomorrow, then a three-letter weekday."""
    if index < len(DAY_LABELS):
        return DAY_LABELS[index]
    return WEEKDAY_ABBREVIATIONS[day_date.weekday()]


def study_time_estimate(count: int, minutes_per_card: float = MINUTES_PER_CARD) -> str:
    """
    Rough study time for ``count`` cards.

    "~N min" below an hour, "~Nh" with hours rounded from there, and an
    empty string when nothing is due.
    """
    if count <= 0:
        return ""
    minutes = math.ceil(count * minutes_per_card)
    if minutes < 60:
        return f"~{minutes} min"
    return f"~{round_half_up(minutes / 60)}h"


def fold_overdue(cards: Iterable[Card], now: datetime) -> list[Card]:
    """
    Move overdue and never-scheduled cards onto ``now``.

    The generator only counts cards inside its window; callers that want
    today's bucket to include the backlog pass their cards through this first.
    """
    require_aware(now)
    folded = []
    for card in cards:
        if card.next_review_date is None or card.next_review_date < now:
            card = dataclasses.replace(card, next_review_date=now)
        folded.append(card)
    return folded


class ForecastGenerator:
    """
    Projects daily review counts from card due dates.

    Stateless and side-effect free.
    """

    def __init__(
        self,
        heavy_day_threshold: int = HEAVY_DAY_THRESHOLD,
        minutes_per_card: float = MINUTES_PER_CARD,
    ):
        self.heavy_day_threshold = heavy_day_threshold
        self.minutes_per_card = minutes_per_card

    def forecast(self, cards: Iterable[Card], days: int, now: datetime) -> Forecast:
        """
        Count cards due on each of the next ``days`` calendar days.

        Day 0 is today in ``now``'s timezone. Cards due before today, after the
        window, or never scheduled are not counted.

        Raises:
            InvalidInput: If days is negative, runs past the last representable
                date, or now is naive.
        """
        if isinstance(days, bool) or not isinstance(days, int) or days < 0:
            raise InvalidInput(f"days must be a non-negative integer, got {days!r}")
        require_aware(now)

        today = now.date()
        if days > (date.max - today).days + 1:
            raise InvalidInput(f"days={days} runs past {date.max.isoformat()}")
        last = today + timedelta(days=days - 1)
        buckets: Counter = Counter()
        for card in cards:
            if card.next_review_date is None:
                continue
            due = local_day(card.next_review_date, now)
            if today <= due <= last:
                buckets[due] += 1

        counted = []
        for i in range(days):
            day = today + timedelta(days=i)
            counted.append(ForecastDay(date=day, count=buckets[day]))

        return self.summarize(counted)

    def summarize(self, forecast_days: list[ForecastDay]) -> Forecast:
        """
        Aggregate an already-counted day list into a Forecast.

        Index 0 is today. Labels, time estimates and heavy flags are derived
        from each day's position and count; any values already set on the
        input days are replaced.
        """
        days = [
            dataclasses.replace(
                d,
                label=day_label(d.date, i),
                time_estimate=study_time_estimate(d.count, self.minutes_per_card),
                is_heavy=self.is_heavy(d.count),
            )
            for i, d in enumerate(forecast_days)
        ]
        total = sum(d.count for d in days)
        return Forecast(
            days=days,
            total=total,
            total_estimate=study_time_estimate(total, self.minutes_per_card),
            heavy_days=sum(1 for d in days if d.is_heavy),
        )

    def is_heavy(self, count: int) -> bool:
        return count >= self.heavy_day_threshold
