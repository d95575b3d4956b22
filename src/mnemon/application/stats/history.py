"""
Daily review history: recording, retention rates and study streaks.

Pure functions over lists of DailyReviewRecord. Functions that change the
history return a new list; the caller stores it.
"""

import dataclasses
from datetime import date, datetime, timedelta

from mnemon.application.scheduling.scheduler import validate_quality
from mnemon.application.utils.clock import require_aware, round_half_up
from mnemon.domain.cards.models import DailyReviewRecord, StreakAchievement, StreakHistory
from mnemon.domain.constants import MAX_HISTORY_DAYS, STREAK_MILESTONES
from mnemon.domain.errors import InvalidInput

_RATING_BUCKETS = {
    0: "again_count",
    1: "again_count",
    2: "again_count",
    3: "hard_count",
    4: "good_count",
    5: "easy_count",
}

_MILESTONE_LABELS = {
    7: "1 Week",
    14: "2 Weeks",
    30: "1 Month",
    60: "2 Months",
    100: "100 Days",
    180: "6 Months",
    365: "1 Year",
}


def record_review(
    history: list[DailyReviewRecord],
    quality: int,
    now: datetime,
    minutes: float = 0.0,
) -> list[DailyReviewRecord]:
    """Count one review of the given quality on ``now``'s calendar day."""
    validate_quality(quality)
    today = require_aware(now).date()

    bucket = _RATING_BUCKETS[quality]
    by_date = {r.date: r for r in history}
    record = by_date.get(today, DailyReviewRecord(date=today))
    by_date[today] = dataclasses.replace(
        record,
        total_reviews=record.total_reviews + 1,
        minutes_studied=record.minutes_studied + minutes,
        **{bucket: getattr(record, bucket) + 1},
    )
    return prune_history(sorted(by_date.values(), key=lambda r: r.date), today)


def prune_history(
    history: list[DailyReviewRecord], today: date, max_days: int = MAX_HISTORY_DAYS
) -> list[DailyReviewRecord]:
    cutoff = today - timedelta(days=max_days)
    return [r for r in history if r.date >= cutoff]


def retention_rate(history: list[DailyReviewRecord], days: int, today: date) -> float:
    """
    Share of correct reviews over the last ``days`` days.

    Correct means anything except "Again". Returns 0.0 when there were no reviews.
    """
    cutoff = today - timedelta(days=days)
    relevant = [r for r in history if r.date >= cutoff]
    total = sum(r.total_reviews for r in relevant)
    if total == 0:
        return 0.0
    return sum(r.correct_reviews for r in relevant) / total


def rolling_retention_rates(
    history: list[DailyReviewRecord], days: int, today: date, window: int = 7
) -> list[tuple[date, float]]:
    """
    Retention for each of the last ``days`` days, oldest first, for charting.

    Each day's rate is taken over a ``window``-day span centred on it, so
    the most recent days average over fewer recorded days. Days with no
    reviews in their span get 0.0.
    """
    if window < 1 or window % 2 == 0:
        raise InvalidInput(f"window must be a positive odd number of days, got {window}")

    by_date = {r.date: r for r in history}
    half = window // 2
    result = []
    for offset in range(days - 1, -1, -1):
        centre = today - timedelta(days=offset)
        span = [by_date.get(centre + timedelta(days=d)) for d in range(-half, half + 1)]
        total = sum(r.total_reviews for r in span if r)
        correct = sum(r.correct_reviews for r in span if r)
        result.append((centre, correct / total if total else 0.0))
    return result


def review_counts_for_days(
    history: list[DailyReviewRecord], days: int, today: date
) -> list[DailyReviewRecord]:
    """One record per day for the last ``days`` days, oldest first, zero-filled."""
    by_date = {r.date: r for r in history}
    result = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        result.append(by_date.get(day, DailyReviewRecord(date=day)))
    return result


def calculate_streak(
    history: list[DailyReviewRecord], today: date
) -> tuple[int, date | None]:
    """
    Current study streak and the last day anything was studied.

    A streak counts consecutive days with at least one review, ending today
    or yesterday. Anything older breaks it.
    """
    studied = sorted({r.date for r in history if r.total_reviews > 0}, reverse=True)
    if not studied:
        return 0, None

    most_recent = studied[0]
    if most_recent < today - timedelta(days=1):
        return 0, most_recent

    streak = 0
    expected = most_recent
    for day in studied:
        if day != expected:
            break
        streak += 1
        expected = day - timedelta(days=1)
    return streak, most_recent


def longest_run(history: list[DailyReviewRecord]) -> int:
    """Longest run of consecutive study days anywhere in the history."""
    longest = run = 0
    previous = None
    for day in sorted({r.date for r in history if r.total_reviews > 0}):
        run = run + 1 if previous == day - timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day
    return longest


def new_milestones(
    current_streak: int, achievements: tuple[StreakAchievement, ...], today: date
) -> tuple[StreakAchievement, ...]:
    """Milestones the streak has reached that are not yet among ``achievements``."""
    reached = {a.milestone for a in achievements}
    return tuple(
        StreakAchievement(milestone=m, achieved_on=today)
        for m in STREAK_MILESTONES
        if current_streak >= m and m not in reached
    )


def update_streak(
    streak: StreakHistory, history: list[DailyReviewRecord], today: date
) -> StreakHistory:
    """
    Refresh stored streak state from the review history.

    The current streak and last study date are recomputed; the longest streak
    only grows, and newly reached milestones are appended to the achievements.
    """
    current, last_study_date = calculate_streak(history, today)
    return StreakHistory(
        current_streak=current,
        longest_streak=max(streak.longest_streak, current),
        last_study_date=last_study_date,
        achievements=streak.achievements
        + new_milestones(current, streak.achievements, today),
    )


def next_milestone(current_streak: int) -> int | None:
    for milestone in STREAK_MILESTONES:
        if current_streak < milestone:
            return milestone
    return None


def milestone_progress(current_streak: int) -> tuple[int | None, int, int]:
    """
    Progress towards the next streak milestone.

    Returns:
        (next milestone or None, percent complete 0-100, days remaining)
    """
    upcoming = next_milestone(current_streak)
    if upcoming is None:
        return None, 100, 0

    previous = max([0] + [m for m in STREAK_MILESTONES if m <= current_streak])
    span = upcoming - previous
    progress = round_half_up((current_streak - previous) * 100 / span) if span > 0 else 0
    return upcoming, progress, upcoming - current_streak


def milestone_label(milestone: int) -> str:
    return _MILESTONE_LABELS.get(milestone, f"{milestone} Days")


def streak_message(current_streak: int, studied_today: bool) -> str:
    if current_streak == 0:
        return "Great start! Keep it going!" if studied_today else "Start a streak today!"

    if not studied_today:
        return f"Study today to continue your {current_streak} day streak!"

    upcoming, _, remaining = milestone_progress(current_streak)
    if upcoming is None:
        return "Amazing! You've achieved all milestones!"
    label = milestone_label(upcoming)
    if remaining == 1:
        return f"Just 1 more day to {label}!"
    if remaining <= 3:
        return f"Only {remaining} days to {label}!"
    return f"{remaining} days to {label}"
