# Domain Cards Package
from .models import Card, DailyReviewRecord, ForecastDay, StreakAchievement, StreakHistory
from .ports import CardRepository

__all__ = [
    "Card",
    "ForecastDay",
    "DailyReviewRecord",
    "StreakAchievement",
    "StreakHistory",
    "CardRepository",
]
