"""
Domain models for spaced-repetition scheduling.

These are pure data structures with no I/O or external dependencies.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime

from mnemon.domain.constants import DEFAULT_EASE_FACTOR

_SOURCE_PREFIX = re.compile(r"^[A-Z]+\d*_")


@dataclass(frozen=True)
class Card:
    """
    A flashcard with its SM-2 scheduling state.

    Attributes:
        id: Opaque stable identifier.
        source_type: Kind of content the card points at (e.g. "milestone", "concept").
        source_id: Identifier of that content item.
        pack_ids: Grouping collections; only used for upstream filtering.
        ease_factor: Difficulty multiplier, higher means retained longer.
        interval: Days until the next review, 0 for an unreviewed card.
        repetitions: Consecutive successful reviews since the last lapse.
        next_review_date: When the card is due, None if never scheduled.
        last_reviewed_at: When the card was last reviewed, None if never.
    """

    id: str
    source_type: str = "concept"
    source_id: str = ""
    pack_ids: frozenset[str] = field(default_factory=frozenset)
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review_date: datetime | None = None
    last_reviewed_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_new(self) -> bool:
        return self.last_reviewed_at is None

    @property
    def display_name(self) -> str:
        """Source id without its type prefix (E2017_TRANSFORMER -> TRANSFORMER)."""
        name = self.source_id or self.id
        return _SOURCE_PREFIX.sub("", name).replace("_", " ")


@dataclass(frozen=True)
class ForecastDay:
    """Number of cards falling due on one calendar day."""

    date: date
    count: int
    label: str = ""
    time_estimate: str = ""
    is_heavy: bool = False


@dataclass(frozen=True)
class DailyReviewRecord:
    """
    Aggregated review activity for a single calendar day.

    Correct reviews are everything except "Again" (hard + good + easy).
    """

    date: date
    total_reviews: int = 0
    again_count: int = 0
    hard_count: int = 0
    good_count: int = 0
    easy_count: int = 0
    minutes_studied: float = 0.0

    @property
    def correct_reviews(self) -> int:
        return self.hard_count + self.good_count + self.easy_count


@dataclass(frozen=True)
class StreakAchievement:
    """A streak milestone and the day it was first reached."""

    milestone: int
    achieved_on: date


@dataclass(frozen=True)
class StreakHistory:
    """
    Persistent streak state.

    Unlike the current streak, which can always be recomputed from the
    review history, the longest streak and the achievements outlive history
    pruning and broken streaks.
    """

    current_streak: int = 0
    longest_streak: int = 0
    last_study_date: date | None = None
    achievements: tuple[StreakAchievement, ...] = ()
