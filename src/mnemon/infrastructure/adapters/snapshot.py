"""
Snapshot Card Repository: infrastructure adapter for card snapshot files.

Implements CardRepository over a single YAML (or JSON) file holding a
``cards:`` list, an optional ``history:`` list of daily review records and an
optional ``streak:`` mapping with the longest streak and milestone achievements.
"""

import dataclasses
import json
import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from mnemon.domain.cards.models import Card, DailyReviewRecord, StreakAchievement, StreakHistory
from mnemon.domain.cards.ports import CardRepository
from mnemon.domain.constants import DEFAULT_EASE_FACTOR, MIN_EASE_FACTOR
from mnemon.domain.errors import CardNotFound, SnapshotError

logger = logging.getLogger(__name__)


class CardRecord(BaseModel):
    """On-disk shape of a card."""

    id: str
    source_type: str = "concept"
    source_id: str = ""
    pack_ids: list[str] = Field(default_factory=list)
    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR, ge=MIN_EASE_FACTOR)
    interval: int = Field(default=0, ge=0)
    repetitions: int = Field(default=0, ge=0)
    next_review_date: datetime | None = None
    last_reviewed_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("next_review_date", "last_reviewed_at", "created_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @model_validator(mode="after")
    def check_schedule_dates(self) -> "CardRecord":
        # A card without a review may only be scheduled as a fresh "due now" card
        if self.last_reviewed_at is not None and self.next_review_date is None:
            raise ValueError("reviewed card has no next_review_date")
        if self.last_reviewed_at is None and self.next_review_date is not None and self.interval:
            raise ValueError("unreviewed card is scheduled with a non-zero interval")
        return self

    def to_card(self) -> Card:
        return Card(
            id=self.id,
            source_type=self.source_type,
            source_id=self.source_id,
            pack_ids=frozenset(self.pack_ids),
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            next_review_date=self.next_review_date,
            last_reviewed_at=self.last_reviewed_at,
            created_at=self.created_at,
        )

    @classmethod
    def from_card(cls, card: Card) -> "CardRecord":
        return cls(
            id=card.id,
            source_type=card.source_type,
            source_id=card.source_id,
            pack_ids=sorted(card.pack_ids),
            ease_factor=card.ease_factor,
            interval=card.interval,
            repetitions=card.repetitions,
            next_review_date=card.next_review_date,
            last_reviewed_at=card.last_reviewed_at,
            created_at=card.created_at,
        )


class HistoryRecord(BaseModel):
    """On-disk shape of a daily review record."""

    date: date
    total_reviews: int = Field(default=0, ge=0)
    again_count: int = Field(default=0, ge=0)
    hard_count: int = Field(default=0, ge=0)
    good_count: int = Field(default=0, ge=0)
    easy_count: int = Field(default=0, ge=0)
    minutes_studied: float = Field(default=0.0, ge=0)

    def to_record(self) -> DailyReviewRecord:
        return DailyReviewRecord(**self.model_dump())


class AchievementRecord(BaseModel):
    milestone: int = Field(gt=0)
    achieved_on: date


class StreakRecord(BaseModel):
    """On-disk shape of the streak state."""

    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_study_date: date | None = None
    achievements: list[AchievementRecord] = Field(default_factory=list)

    def to_streak(self) -> StreakHistory:
        return StreakHistory(
            current_streak=self.current_streak,
            longest_streak=max(self.longest_streak, self.current_streak),
            last_study_date=self.last_study_date,
            achievements=tuple(
                StreakAchievement(milestone=a.milestone, achieved_on=a.achieved_on)
                for a in self.achievements
            ),
        )

    @classmethod
    def from_streak(cls, streak: StreakHistory) -> "StreakRecord":
        return cls.model_validate(dataclasses.asdict(streak))


class Snapshot(BaseModel):
    cards: list[CardRecord] = Field(default_factory=list)
    history: list[HistoryRecord] = Field(default_factory=list)
    streak: StreakRecord | None = None


class SnapshotCardRepository(CardRepository):
    """
    Reads and writes cards in a snapshot file.

    The file is re-read on every call so external edits are picked up;
    writes replace the whole file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    async def get_cards(self, pack_id: str | None = None) -> list[Card]:
        cards = [r.to_card() for r in self._load().cards]
        if pack_id is not None:
            cards = [c for c in cards if pack_id in c.pack_ids]
        return cards

    async def get_card(self, card_id: str) -> Card:
        for record in self._load().cards:
            if record.id == card_id:
                return record.to_card()
        raise CardNotFound(card_id)

    async def save_card(self, card: Card) -> None:
        snapshot = self._load()
        self._put_card(snapshot, card)
        self._dump(snapshot)

    async def get_review_history(self) -> list[DailyReviewRecord]:
        records = [r.to_record() for r in self._load().history]
        return sorted(records, key=lambda r: r.date)

    async def get_streak_history(self) -> StreakHistory:
        streak = self._load().streak
        return streak.to_streak() if streak is not None else StreakHistory()

    async def save_review(
        self, card: Card, history: list[DailyReviewRecord], streak: StreakHistory
    ) -> None:
        snapshot = self._load()
        self._put_card(snapshot, card)
        snapshot.history = [HistoryRecord(**dataclasses.asdict(r)) for r in history]
        snapshot.streak = StreakRecord.from_streak(streak)
        self._dump(snapshot)

    def _put_card(self, snapshot: Snapshot, card: Card) -> None:
        for i, record in enumerate(snapshot.cards):
            if record.id == card.id:
                snapshot.cards[i] = CardRecord.from_card(card)
                return
        logger.info(f"Adding new card {card.id} to {self.path}")
        snapshot.cards.append(CardRecord.from_card(card))

    def _load(self) -> Snapshot:
        if not self.path.exists():
            logger.warning(f"Snapshot {self.path} does not exist; treating as empty")
            return Snapshot()

        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise SnapshotError(f"Could not read {self.path}: {e}") from e

        if raw is None:
            return Snapshot()
        if not isinstance(raw, dict):
            raise SnapshotError(f"{self.path}: expected a mapping with a 'cards' list")

        try:
            return Snapshot.model_validate(raw)
        except ValidationError as e:
            raise SnapshotError(f"{self.path}: invalid snapshot\n{e}") from e

    def _dump(self, snapshot: Snapshot) -> None:
        data: dict[str, Any] = snapshot.model_dump(mode="json")
        if data["streak"] is None:
            del data["streak"]
        if self.path.suffix.lower() == ".json":
            text = json.dumps(data, indent=2) + "\n"
        else:
            text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")
