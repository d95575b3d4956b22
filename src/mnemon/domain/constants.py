"""Centralized constants for the mnemon engine.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Quality ratings ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASS_THRESHOLD = 3

# Ratings offered by the review UI: Again, Hard, Good, Easy
UI_RATINGS = (0, 3, 4, 5)
RATING_LABELS = {0: "Again", 1: "Again", 2: "Again", 3: "Hard", 4: "Good", 5: "Easy"}

# ---------- SM-2 ----------
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FAILURE_PENALTY = 0.2
MIN_INTERVAL = 1  # days
FIRST_INTERVAL = 1  # days
SECOND_INTERVAL = 6  # days
MASTERED_INTERVAL = 21  # days, strictly greater means mastered

# ---------- Forecast ----------
DEFAULT_FORECAST_DAYS = 7
HEAVY_DAY_THRESHOLD = 15
MINUTES_PER_CARD = 0.5
DAY_LABELS = ("Today", "Tomorrow")
WEEKDAY_ABBREVIATIONS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
FORECAST_EMPTY_MESSAGE = "No upcoming reviews"

# ---------- Insights ----------
DEFAULT_INSIGHT_LIMIT = 3
EASE_HARD_BELOW = 1.8
EASE_MODERATE_BELOW = 2.2
INSIGHTS_EMPTY_MESSAGE = "Review cards to see insights"
SECTION_EMPTY_MESSAGES = {
    "challenging": "No challenging cards yet",
    "well_known": "Keep studying to master cards",
    "overdue": "All caught up!",
}

# ---------- Review history ----------
MAX_HISTORY_DAYS = 90
TARGET_RETENTION_RATE = 0.85
STREAK_MILESTONES = (7, 14, 30, 60, 100, 180, 365)
