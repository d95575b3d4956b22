"""
SM-2 scheduler for computing a card's next review.

This is a pure computation module with no I/O. Callers pass the current
time in and persist the returned card themselves.
"""

import dataclasses
import logging
from datetime import datetime

from mnemon.application.utils.clock import add_days, require_aware, round_half_up
from mnemon.domain.cards.models import Card
from mnemon.domain.constants import (
    DEFAULT_EASE_FACTOR,
    FAILURE_PENALTY,
    FIRST_INTERVAL,
    MASTERED_INTERVAL,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_INTERVAL,
    MIN_QUALITY,
    PASS_THRESHOLD,
    RATING_LABELS,
    SECOND_INTERVAL,
    UI_RATINGS,
)
from mnemon.domain.errors import InvalidInput

logger = logging.getLogger(__name__)


def validate_quality(quality: int) -> int:
    """Return ``quality`` unchanged, or raise InvalidInput if it is not a 0-5 integer."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInput(f"quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidInput(
            f"quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return quality


def rating_label(quality: int) -> str:
    """Button label for a rating: Again, Hard, Good or Easy."""
    return RATING_LABELS[validate_quality(quality)]


def is_due(card: Card, now: datetime) -> bool:
    """A card is due when it was never scheduled or its due date has arrived."""
    require_aware(now)
    if card.next_review_date is None:
        return True
    return card.next_review_date <= now


def is_mastered(card: Card, threshold: int = MASTERED_INTERVAL) -> bool:
    return card.interval > threshold


class Scheduler:
    """
    Computes the next scheduling state of a card after a review.

    Stateless and side-effect free.
    """

    def __init__(
        self,
        min_ease_factor: float = MIN_EASE_FACTOR,
        default_ease_factor: float = DEFAULT_EASE_FACTOR,
        failure_penalty: float = FAILURE_PENALTY,
        min_interval: int = MIN_INTERVAL,
        first_interval: int = FIRST_INTERVAL,
        second_interval: int = SECOND_INTERVAL,
        pass_threshold: int = PASS_THRESHOLD,
    ):
        if min_ease_factor <= 0:
            raise InvalidInput("min_ease_factor must be positive")
        if failure_penalty < 0:
            raise InvalidInput("failure_penalty must not be negative")
        if min_interval < 1 or first_interval < 1 or second_interval < 1:
            raise InvalidInput("intervals must be at least one day")
        self.min_ease_factor = min_ease_factor
        self.default_ease_factor = max(default_ease_factor, min_ease_factor)
        self.failure_penalty = failure_penalty
        self.min_interval = min_interval
        self.first_interval = first_interval
        self.second_interval = second_interval
        self.pass_threshold = pass_threshold

    def new_card(
        self,
        card_id: str,
        now: datetime,
        source_type: str = "concept",
        source_id: str = "",
        pack_ids: frozenset[str] | set[str] = frozenset(),
    ) -> Card:
        """
        Create a card that is due immediately.

        The card has never been reviewed (``last_reviewed_at`` is None) but is
        scheduled for ``now`` with a zero interval.
        """
        require_aware(now)
        return Card(
            id=card_id,
            source_type=source_type,
            source_id=source_id,
            pack_ids=frozenset(pack_ids),
            ease_factor=self.default_ease_factor,
            interval=0,
            repetitions=0,
            next_review_date=now,
            last_reviewed_at=None,
            created_at=now,
        )

    def schedule(self, card: Card, quality: int, now: datetime) -> Card:
        """
        Apply one review to ``card`` and return its new state.

        Args:
            card: Current scheduling state. Not modified.
            quality: Recall rating, 0 (blackout) to 5 (perfect).
            now: Review time, timezone-aware.

        Returns:
            A new Card with updated ease, interval, repetitions and dates.

        Raises:
            InvalidInput: If quality is out of range or now is naive.
        """
        validate_quality(quality)
        require_aware(now)

        if quality < self.pass_threshold:
            repetitions = 0
            interval = self.min_interval
            ease = self._clamp_ease(card.ease_factor - self.failure_penalty)
            logger.debug(f"Lapse on card {card.id}: ease {card.ease_factor:.2f} -> {ease:.2f}")
        else:
            repetitions = card.repetitions + 1
            ease = self._clamp_ease(card.ease_factor + self._ease_delta(quality))
            interval = self._next_interval(repetitions, card.interval, ease)

        return dataclasses.replace(
            card,
            ease_factor=ease,
            interval=interval,
            repetitions=repetitions,
            next_review_date=add_days(now, interval),
            last_reviewed_at=now,
        )

    def preview(self, card: Card, now: datetime) -> dict[int, int]:
        """
        Interval each UI rating would produce, keyed by quality.

        Used to label the Again/Hard/Good/Easy buttons before the user answers.
        """
        return {q: self.schedule(card, q, now).interval for q in UI_RATINGS}

    def _ease_delta(self, quality: int) -> float:
        """
        SM-2 ease adjustment for a passing review.

        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at zero
        so a pass never lowers ease: 3 and 4 keep it flat, 5 adds 0.1.
        """
        miss = MAX_QUALITY - quality
        return max(0.0, 0.1 - miss * (0.08 + miss * 0.02))

    def _next_interval(self, repetitions: int, previous: int, ease: float) -> int:
        if repetitions == 1:
            return self.first_interval
        if repetitions == 2:
            return self.second_interval
        return max(self.min_interval, round_half_up(previous * ease))

    def _clamp_ease(self, ease: float) -> float:
        # Four decimal places, e.g. 2.6 rather than 2.5999999999999996
        return max(self.min_ease_factor, round(ease, 4))
