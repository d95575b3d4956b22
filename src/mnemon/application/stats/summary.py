"""
Study summary for the statistics page.

Combines card state and review history into one snapshot of counts,
retention and upcoming workload. This is a pure computation module with no I/O.
"""

from dataclasses import dataclass
from datetime import date, datetime

from mnemon.application.forecast.generator import ForecastGenerator, fold_overdue
from mnemon.application.insights.classifier import InsightClassifier
from mnemon.application.scheduling.scheduler import is_mastered
from mnemon.application.stats.history import calculate_streak, longest_run, retention_rate
from mnemon.application.utils.clock import require_aware
from mnemon.domain.cards.models import Card, DailyReviewRecord, StreakHistory
from mnemon.domain.constants import (
    DEFAULT_EASE_FACTOR,
    DEFAULT_FORECAST_DAYS,
    MASTERED_INTERVAL,
)


@dataclass
class StudySummary:
    """
    Aggregate statistics across a card collection.
    """

    # Counts
    total_cards: int
    mastered_cards: int  # interval > mastered threshold
    learning_cards: int  # reviewed, not yet mastered
    new_cards: int  # never reviewed

    # Streak
    current_streak: int
    longest_streak: int  # Stored best, or the longest run in history if larger
    last_study_date: date | None

    # Performance
    retention_rate_7d: float
    retention_rate_30d: float
    average_ease_factor: float  # Over reviewed cards only
    total_reviews_all_time: int
    total_minutes_studied: float

    # Insights
    most_challenging_card_ids: list[str]
    overdue_card_ids: list[str]

    # Workload; today includes the overdue backlog
    due_today: int
    due_tomorrow: int
    due_this_week: int


class StatsCalculator:
    """
    Builds a StudySummary from cards and review history.

    Stateless and side-effect free.
    """

    def __init__(
        self,
        forecaster: ForecastGenerator | None = None,
        classifier: InsightClassifier | None = None,
        mastered_interval: int = MASTERED_INTERVAL,
        challenging_limit: int = 5,
    ):
        self._forecaster = forecaster or ForecastGenerator()
        self._classifier = classifier or InsightClassifier()
        self.mastered_interval = mastered_interval
        self.challenging_limit = challenging_limit

    def summarize(
        self,
        cards: list[Card],
        history: list[DailyReviewRecord],
        now: datetime,
        streak: StreakHistory | None = None,
    ) -> StudySummary:
        """
        Summarize a collection at ``now``.

        Args:
            streak: Stored streak state; its longest streak survives history
                pruning, so it can exceed any run left in ``history``.
        """
        today = require_aware(now).date()
        reviewed = [c for c in cards if c.last_reviewed_at is not None]
        mastered = [c for c in cards if is_mastered(c, self.mastered_interval)]
        learning = [c for c in reviewed if not is_mastered(c, self.mastered_interval)]

        average_ease = (
            sum(c.ease_factor for c in reviewed) / len(reviewed)
            if reviewed
            else DEFAULT_EASE_FACTOR
        )

        # Every overdue card, not just the top few shown in the panel
        report = self._classifier.classify(cards, now, limit=len(cards))
        challenging_ids = report.challenging.card_ids[: self.challenging_limit]

        week = self._forecaster.forecast(fold_overdue(cards, now), DEFAULT_FORECAST_DAYS, now)
        current, last_study_date = calculate_streak(history, today)
        longest = max(streak.longest_streak if streak else 0, longest_run(history))

        return StudySummary(
            total_cards=len(cards),
            mastered_cards=len(mastered),
            learning_cards=len(learning),
            new_cards=len(cards) - len(reviewed),
            current_streak=current,
            longest_streak=longest,
            last_study_date=last_study_date,
            retention_rate_7d=retention_rate(history, 7, today),
            retention_rate_30d=retention_rate(history, 30, today),
            average_ease_factor=average_ease,
            total_reviews_all_time=sum(r.total_reviews for r in history),
            total_minutes_studied=sum(r.minutes_studied for r in history),
            most_challenging_card_ids=challenging_ids,
            overdue_card_ids=report.overdue.card_ids,
            due_today=week.days[0].count,
            due_tomorrow=week.days[1].count,
            due_this_week=week.total,
        )
