"""
Review Analytics Service: application layer orchestrator.

Coordinates loading cards from the repository, running the scheduling and
analytics components, and storing the scheduler's results.
"""

import logging
from datetime import date, datetime

from mnemon.application.forecast.generator import Forecast, ForecastGenerator, fold_overdue
from mnemon.application.insights.classifier import InsightClassifier, InsightReport
from mnemon.application.scheduling.scheduler import Scheduler, is_due
from mnemon.application.stats.history import record_review, rolling_retention_rates, update_streak
from mnemon.application.stats.summary import StatsCalculator, StudySummary
from mnemon.application.utils.clock import require_aware
from mnemon.domain.cards.models import Card
from mnemon.domain.cards.ports import CardRepository
from mnemon.domain.constants import DEFAULT_FORECAST_DAYS, DEFAULT_INSIGHT_LIMIT

logger = logging.getLogger(__name__)


class ReviewAnalyticsService:
    """
    Application service for reviewing cards and reporting on them.

    Follows Dependency Inversion: depends on the CardRepository abstraction,
    not concrete adapter implementations. Components are optional; defaults
    are used if not provided.
    """

    def __init__(
        self,
        repo: CardRepository,
        scheduler: Scheduler | None = None,
        forecaster: ForecastGenerator | None = None,
        classifier: InsightClassifier | None = None,
        calculator: StatsCalculator | None = None,
        forecast_days: int = DEFAULT_FORECAST_DAYS,
        insight_limit: int = DEFAULT_INSIGHT_LIMIT,
    ):
        self._repo = repo
        self._scheduler = scheduler or Scheduler()
        self._forecaster = forecaster or ForecastGenerator()
        self._classifier = classifier or InsightClassifier()
        self._calc = calculator or StatsCalculator(self._forecaster, self._classifier)
        self.forecast_days = forecast_days
        self.insight_limit = insight_limit

    async def review(
        self, card_id: str, quality: int, now: datetime, minutes: float = 0.0
    ) -> Card:
        """
        Apply a review to a stored card and persist the result.

        The card, the day's review history and the streak state are stored
        in one repository write. The rating is validated before anything is
        written, so an invalid quality leaves all of them untouched.

        Raises:
            CardNotFound: If the repository has no such card.
            InvalidInput: If quality is out of range.
        """
        card = await self._repo.get_card(card_id)
        updated = self._scheduler.schedule(card, quality, now)
        history = record_review(await self._repo.get_review_history(), quality, now, minutes)
        previous = await self._repo.get_streak_history()
        streak = update_streak(previous, history, now.date())

        await self._repo.save_review(updated, history, streak)

        logger.info(
            f"Reviewed {card_id} (q={quality}): interval {card.interval}d -> "
            f"{updated.interval}d, ease {updated.ease_factor:.2f}"
        )
        for achievement in streak.achievements[len(previous.achievements) :]:
            logger.info(f"Reached the {achievement.milestone}-day streak milestone")
        return updated

    async def add_card(
        self,
        card_id: str,
        now: datetime,
        source_type: str = "concept",
        source_id: str = "",
        pack_ids: frozenset[str] | set[str] = frozenset(),
    ) -> Card:
        card = self._scheduler.new_card(card_id, now, source_type, source_id, pack_ids)
        await self._repo.save_card(card)
        return card

    async def get_due_cards(self, now: datetime, pack_id: str | None = None) -> list[Card]:
        """Cards due at ``now``, earliest due date first, never-scheduled last."""
        cards = [c for c in await self._repo.get_cards(pack_id) if is_due(c, now)]
        return sorted(
            cards,
            key=lambda c: (c.next_review_date is None, c.next_review_date or now),
        )

    async def get_forecast(
        self,
        now: datetime,
        days: int | None = None,
        pack_id: str | None = None,
        include_overdue: bool = False,
    ) -> Forecast:
        """
        Forecast daily review counts.

        Args:
            include_overdue: Count the overdue backlog and never-scheduled
                cards on today instead of dropping them.
        """
        cards = await self._repo.get_cards(pack_id)
        if include_overdue:
            cards = fold_overdue(cards, now)
        return self._forecaster.forecast(
            cards, self.forecast_days if days is None else days, now
        )

    async def get_insights(
        self, now: datetime, limit: int | None = None, pack_id: str | None = None
    ) -> InsightReport:
        cards = await self._repo.get_cards(pack_id)
        return self._classifier.classify(
            cards, now, limit=self.insight_limit if limit is None else limit
        )

    async def get_summary(self, now: datetime, pack_id: str | None = None) -> StudySummary:
        cards = await self._repo.get_cards(pack_id)
        history = await self._repo.get_review_history()
        streak = await self._repo.get_streak_history()
        return self._calc.summarize(cards, history, now, streak)

    async def get_retention_trend(self, now: datetime, days: int = 30) -> list[tuple[date, float]]:
        """Daily retention over the last ``days`` days on a 7-day centred window."""
        history = await self._repo.get_review_history()
        return rolling_retention_rates(history, days, require_aware(now).date())
