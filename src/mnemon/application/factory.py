"""
Service Factory
Centralizes building the engine components and repository from configuration.
"""

import logging

from mnemon.application.config import AppConfig
from mnemon.application.forecast.generator import ForecastGenerator
from mnemon.application.insights.classifier import InsightClassifier
from mnemon.application.scheduling.scheduler import Scheduler
from mnemon.application.service import ReviewAnalyticsService
from mnemon.application.stats.summary import StatsCalculator
from mnemon.domain.cards.ports import CardRepository
from mnemon.infrastructure.adapters.snapshot import SnapshotCardRepository

logger = logging.getLogger(__name__)


def build_scheduler(config: AppConfig) -> Scheduler:
    return Scheduler(
        min_ease_factor=config.min_ease_factor,
        default_ease_factor=config.default_ease_factor,
        failure_penalty=config.failure_penalty,
        min_interval=config.min_interval,
        first_interval=config.first_interval,
        second_interval=config.second_interval,
    )


def get_card_repository(config: AppConfig) -> CardRepository:
    """
    Returns the CardRepository implementation for the configured cards file.
    """
    logger.debug(f"Using card snapshot {config.cards_file}")
    return SnapshotCardRepository(config.cards_file)


def get_service(config: AppConfig, repo: CardRepository | None = None) -> ReviewAnalyticsService:
    """
    Wire a ReviewAnalyticsService with components tuned by ``config``.
    """
    forecaster = ForecastGenerator(
        heavy_day_threshold=config.heavy_day_threshold,
        minutes_per_card=config.minutes_per_card,
    )
    classifier = InsightClassifier()
    return ReviewAnalyticsService(
        repo=repo or get_card_repository(config),
        scheduler=build_scheduler(config),
        forecaster=forecaster,
        classifier=classifier,
        calculator=StatsCalculator(
            forecaster, classifier, mastered_interval=config.mastered_interval
        ),
        forecast_days=config.forecast_days,
        insight_limit=config.insight_limit,
    )
