"""
Card insight classifier.

Picks the cards shown in the three insight panels:
- Most Challenging: reviewed cards with the lowest ease factor
- Well Known: cards with the longest intervals
- Needs Review: cards past their review date

Each section is an independent pass over the full input, so one card can
show up in several sections at once.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from mnemon.application.utils.clock import require_aware, whole_days_between
from mnemon.domain.cards.models import Card
from mnemon.domain.constants import (
    DEFAULT_INSIGHT_LIMIT,
    EASE_HARD_BELOW,
    EASE_MODERATE_BELOW,
    INSIGHTS_EMPTY_MESSAGE,
    SECTION_EMPTY_MESSAGES,
)
from mnemon.domain.errors import InvalidInput

Category = Literal["challenging", "well_known", "overdue"]
Severity = Literal["hard", "moderate", "easy"]


@dataclass(frozen=True)
class InsightEntry:
    """A card as shown in an insight section, with its rendered metric."""

    card: Card
    value: str  # "1.45", "2 weeks", "5d"
    severity: Severity | None = None
    days_overdue: int | None = None


@dataclass(frozen=True)
class InsightSection:
    category: Category
    entries: list[InsightEntry]

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def empty_message(self) -> str | None:
        return SECTION_EMPTY_MESSAGES[self.category] if self.is_empty else None

    @property
    def card_ids(self) -> list[str]:
        return [e.card.id for e in self.entries]


@dataclass(frozen=True)
class InsightReport:
    challenging: InsightSection
    well_known: InsightSection
    overdue: InsightSection
    is_empty: bool  # No cards at all, distinct from three empty sections

    @property
    def empty_message(self) -> str | None:
        return INSIGHTS_EMPTY_MESSAGE if self.is_empty else None

    @property
    def can_study_weak_cards(self) -> bool:
        return not self.challenging.is_empty


def format_interval(days: int) -> str:
    """
    Render an interval with the largest whole unit that fits.

    0 is "New"; below a week counts days; below 30 days counts whole weeks
    (10 -> "1 week"); from 30 days on counts whole 30-day months.
    """
    if days <= 0:
        return "New"
    if days < 7:
        return "1 day" if days == 1 else f"{days} days"
    if days < 30:
        weeks = days // 7
        return "1 week" if weeks == 1 else f"{weeks} weeks"
    months = days // 30
    return "1 month" if months == 1 else f"{months} months"


def ease_severity(ease_factor: float) -> Severity:
    if ease_factor < EASE_HARD_BELOW:
        return "hard"
    if ease_factor < EASE_MODERATE_BELOW:
        return "moderate"
    return "easy"


def days_overdue(card: Card, now: datetime) -> int:
    """Whole days since the card fell due; 0 if not yet due or never scheduled."""
    if card.next_review_date is None:
        return 0
    return whole_days_between(card.next_review_date, now)


class InsightClassifier:
    """
    Classifies cards into challenging, well-known and overdue cohorts.

    Stateless and side-effect free.
    """

    def classify(
        self,
        cards: Iterable[Card],
        now: datetime,
        limit: int = DEFAULT_INSIGHT_LIMIT,
    ) -> InsightReport:
        """
        Build the three insight sections for ``cards``.

        Args:
            cards: All cards to consider.
            now: Current time, timezone-aware; decides what is overdue.
            limit: Maximum entries per section.

        Raises:
            InvalidInput: If limit is negative or now is naive.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise InvalidInput(f"limit must be a non-negative integer, got {limit!r}")
        require_aware(now)

        cards = list(cards)
        return InsightReport(
            challenging=InsightSection("challenging", self._challenging(cards, limit)),
            well_known=InsightSection("well_known", self._well_known(cards, limit)),
            overdue=InsightSection("overdue", self._overdue(cards, now, limit)),
            is_empty=not cards,
        )

    def _challenging(self, cards: list[Card], limit: int) -> list[InsightEntry]:
        reviewed = [c for c in cards if c.last_reviewed_at is not None]
        # Most recently reviewed first, then a stable sort by ease keeps that
        # order among equal ease factors
        reviewed.sort(key=lambda c: c.last_reviewed_at, reverse=True)
        reviewed.sort(key=lambda c: c.ease_factor)
        return [
            InsightEntry(
                card=c, value=f"{c.ease_factor:.2f}", severity=ease_severity(c.ease_factor)
            )
            for c in reviewed[:limit]
        ]

    def _well_known(self, cards: list[Card], limit: int) -> list[InsightEntry]:
        ranked = sorted(cards, key=lambda c: c.interval, reverse=True)
        return [InsightEntry(card=c, value=format_interval(c.interval)) for c in ranked[:limit]]

    def _overdue(self, cards: list[Card], now: datetime, limit: int) -> list[InsightEntry]:
        due = [c for c in cards if c.next_review_date is not None and c.next_review_date < now]
        due.sort(key=lambda c: c.next_review_date)

        entries = []
        for card in due[:limit]:
            overdue_days = days_overdue(card, now)
            entries.append(
                InsightEntry(
                    card=card,
                    value="Due now" if overdue_days == 0 else f"{overdue_days}d",
                    days_overdue=overdue_days,
                )
            )
        return entries
