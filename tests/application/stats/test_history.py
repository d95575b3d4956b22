from datetime import date, timedelta

import pytest

from mnemon.application.stats.history import (
    calculate_streak,
    longest_run,
    milestone_label,
    milestone_progress,
    new_milestones,
    next_milestone,
    prune_history,
    record_review,
    retention_rate,
    review_counts_for_days,
    rolling_retention_rates,
    streak_message,
    update_streak,
)
from mnemon.domain.cards.models import DailyReviewRecord, StreakAchievement, StreakHistory
from mnemon.domain.errors import InvalidInput

TODAY = date(2026, 3, 11)


def studied(*days_ago, reviews=1):
    return [
        DailyReviewRecord(date=TODAY - timedelta(days=d), total_reviews=reviews) for d in days_ago
    ]


# --- Recording reviews ---


def test_record_review_creates_todays_record(now):
    history = record_review([], 4, now, minutes=1.5)
    assert history == [
        DailyReviewRecord(date=TODAY, total_reviews=1, good_count=1, minutes_studied=1.5)
    ]


@pytest.mark.parametrize(
    "quality,field",
    [
        (0, "again_count"),
        (1, "again_count"),
        (2, "again_count"),
        (3, "hard_count"),
        (4, "good_count"),
        (5, "easy_count"),
    ],
)
def test_record_review_buckets_by_rating(now, quality, field):
    (record,) = record_review([], quality, now)
    assert getattr(record, field) == 1
    assert record.total_reviews == 1


def test_record_review_accumulates_on_same_day(now):
    history = record_review([], 5, now)
    history = record_review(history, 0, now)
    (record,) = history
    assert (record.total_reviews, record.easy_count, record.again_count) == (2, 1, 1)
    assert record.correct_reviews == 1


def test_record_review_keeps_history_sorted_and_pruned(now):
    old = DailyReviewRecord(date=TODAY - timedelta(days=120), total_reviews=4)
    recent = DailyReviewRecord(date=TODAY - timedelta(days=3), total_reviews=2)
    history = record_review([recent, old], 3, now)
    assert [r.date for r in history] == [recent.date, TODAY]


def test_record_review_does_not_mutate_input(now):
    history = studied(1)
    record_review(history, 4, now)
    assert history == studied(1)


def test_record_review_rejects_invalid_quality(now):
    with pytest.raises(InvalidInput):
        record_review([], 7, now)


def test_prune_history_keeps_boundary_day():
    history = studied(90, 91)
    assert [r.date for r in prune_history(history, TODAY)] == [TODAY - timedelta(days=90)]


# --- Retention ---


def test_retention_rate_counts_everything_but_again():
    history = [
        DailyReviewRecord(date=TODAY, total_reviews=4, again_count=1, good_count=3),
        DailyReviewRecord(
            date=TODAY - timedelta(days=2),
            total_reviews=4,
            again_count=2,
            hard_count=1,
            easy_count=1,
        ),
    ]
    assert retention_rate(history, 7, TODAY) == pytest.approx(5 / 8)


def test_retention_rate_window_excludes_older_days():
    history = [
        DailyReviewRecord(date=TODAY, total_reviews=2, good_count=2),
        DailyReviewRecord(date=TODAY - timedelta(days=20), total_reviews=2, again_count=2),
    ]
    assert retention_rate(history, 7, TODAY) == 1.0
    assert retention_rate(history, 30, TODAY) == 0.5


def test_retention_rate_without_reviews_is_zero():
    assert retention_rate([], 7, TODAY) == 0.0


def test_review_counts_for_days_zero_fills():
    history = [DailyReviewRecord(date=TODAY - timedelta(days=1), total_reviews=3)]
    counts = review_counts_for_days(history, 3, TODAY)
    assert [r.date for r in counts] == [TODAY - timedelta(days=d) for d in (2, 1, 0)]
    assert [r.total_reviews for r in counts] == [0, 3, 0]


def test_rolling_retention_centres_window_on_each_day():
    history = [
        DailyReviewRecord(date=TODAY - timedelta(days=10), total_reviews=2, good_count=2),
        DailyReviewRecord(date=TODAY - timedelta(days=6), total_reviews=2, again_count=2),
    ]
    rates = dict(rolling_retention_rates(history, 14, TODAY))

    assert len(rates) == 14
    assert min(rates) == TODAY - timedelta(days=13)
    # Both days fall inside the window centred eight days ago
    assert rates[TODAY - timedelta(days=8)] == 0.5
    assert rates[TODAY - timedelta(days=12)] == 1.0
    assert rates[TODAY - timedelta(days=4)] == 0.0
    assert rates[TODAY - timedelta(days=3)] == 0.0
    assert rates[TODAY] == 0.0


def test_rolling_retention_counts_everything_but_again():
    history = [
        DailyReviewRecord(
            date=TODAY, total_reviews=4, again_count=1, hard_count=1, good_count=1, easy_count=1
        )
    ]
    assert rolling_retention_rates(history, 1, TODAY) == [(TODAY, 0.75)]


@pytest.mark.parametrize("window", [0, 4, -3])
def test_rolling_retention_rejects_bad_window(window):
    with pytest.raises(InvalidInput):
        rolling_retention_rates([], 7, TODAY, window=window)


# --- Streaks ---


def test_streak_of_consecutive_days_ending_today():
    assert calculate_streak(studied(0, 1, 2), TODAY) == (3, TODAY)


def test_streak_still_alive_when_last_study_was_yesterday():
    assert calculate_streak(studied(1, 2), TODAY) == (2, TODAY - timedelta(days=1))


def test_streak_broken_by_gap():
    assert calculate_streak(studied(0, 1, 3, 4, 5), TODAY)[0] == 2


def test_streak_lost_after_missing_two_days():
    assert calculate_streak(studied(2, 3), TODAY) == (0, TODAY - timedelta(days=2))


def test_streak_ignores_days_without_reviews():
    history = studied(0) + studied(1, reviews=0)
    assert calculate_streak(history, TODAY) == (1, TODAY)


def test_streak_without_history():
    assert calculate_streak([], TODAY) == (0, None)


def test_longest_run_finds_best_stretch_anywhere():
    assert longest_run(studied(0, 1, 5, 6, 7, 8, 20)) == 4
    assert longest_run(studied(3, reviews=0)) == 0
    assert longest_run([]) == 0


def test_update_streak_from_empty_state():
    streak = update_streak(StreakHistory(), studied(0, 1, 2), TODAY)
    assert streak == StreakHistory(current_streak=3, longest_streak=3, last_study_date=TODAY)


def test_update_streak_never_lowers_longest():
    before = StreakHistory(
        current_streak=9, longest_streak=9, last_study_date=TODAY - timedelta(days=4)
    )
    streak = update_streak(before, studied(0, 4, 5), TODAY)
    assert streak.current_streak == 1
    assert streak.longest_streak == 9
    assert streak.last_study_date == TODAY


def test_update_streak_records_each_milestone_once():
    history = studied(*range(14))
    first = update_streak(StreakHistory(), history, TODAY)
    assert first.achievements == (
        StreakAchievement(milestone=7, achieved_on=TODAY),
        StreakAchievement(milestone=14, achieved_on=TODAY),
    )

    again = update_streak(first, history, TODAY)
    assert again.achievements == first.achievements


def test_update_streak_does_not_mutate_input():
    before = StreakHistory(longest_streak=2)
    update_streak(before, studied(*range(7)), TODAY)
    assert before == StreakHistory(longest_streak=2)


# --- Milestones ---


@pytest.mark.parametrize(
    "streak,expected",
    [
        (0, (7, 0, 7)),
        (10, (14, 43, 4)),
        (14, (30, 0, 16)),
        (364, (365, 99, 1)),
        (365, (None, 100, 0)),
    ],
)
def test_milestone_progress(streak, expected):
    assert milestone_progress(streak) == expected


def test_next_milestone_and_labels():
    assert next_milestone(6) == 7
    assert next_milestone(7) == 14
    assert next_milestone(500) is None
    assert milestone_label(30) == "1 Month"
    assert milestone_label(45) == "45 Days"


def test_new_milestones_skips_already_achieved():
    achieved = (StreakAchievement(milestone=7, achieved_on=TODAY - timedelta(days=30)),)
    assert new_milestones(31, achieved, TODAY) == (
        StreakAchievement(milestone=14, achieved_on=TODAY),
        StreakAchievement(milestone=30, achieved_on=TODAY),
    )
    assert new_milestones(6, (), TODAY) == ()


@pytest.mark.parametrize(
    "streak,studied_today,message",
    [
        (0, False, "Start a streak today!"),
        (0, True, "Great start! Keep it going!"),
        (5, False, "Study today to continue your 5 day streak!"),
        (6, True, "Just 1 more day to 1 Week!"),
        (5, True, "Only 2 days to 1 Week!"),
        (8, True, "6 days to 2 Weeks"),
        (400, True, "Amazing! You've achieved all milestones!"),
    ],
)
def test_streak_message(streak, studied_today, message):
    assert streak_message(streak, studied_today) == message
