"""Metrics engine — turns raw habit records into daily and weekly statistics.

Pure functions only: no storage, no network, no configuration. Every
numeric edge case (no habits, zero-length week) totals to zero instead of
raising, and every rate/score is an integer in [0, 100].

Score formula:
    score = min(100, round(overall_rate * 0.7
                           + sum(min(streak, week_length)) / total_possible * 100 * 0.3))
"""

import math
from datetime import date, timedelta

from habitcoach.models import (
    DailySnapshot, Entry, Habit, HabitStat, Streak, WeeklySummary,
)

RATE_WEIGHT = 0.7
STREAK_WEIGHT = 0.3


def round_half_up(value: float) -> int:
    """Round .5 toward +infinity (2.5 -> 3, 12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def _percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return max(0, min(100, round_half_up(part / whole * 100)))


def week_window(today: date, lookback_days: int = 7) -> tuple[date, date]:
    """Inclusive (start, end) date range for a weekly fetch.

    start = today - lookback_days, so the default covers 8 calendar days.
    """
    return today - timedelta(days=lookback_days), today


def compute_daily_snapshot(habits: list[Habit], entries: list[Entry],
                           streaks: list[Streak], today: date) -> DailySnapshot:
    todays = [e for e in entries if e.date == today]
    completed_today = sum(1 for e in todays if e.completed)
    best_streak = max([0] + [s.current_streak for s in streaks])
    return DailySnapshot(
        completed_today=completed_today,
        total_habits=len(habits),
        best_streak=best_streak,
    )


def _habit_stat(habit: Habit, entries: list[Entry], streaks: list[Streak],
                week_length: int) -> HabitStat:
    completed = sum(1 for e in entries if e.habit_id == habit.id and e.completed)
    streak = next(
        (s.current_streak for s in streaks if s.habit_id == habit.id), 0
    )
    return HabitStat(
        name=habit.name,
        icon=habit.icon,
        completed_count=completed,
        completion_rate=_percent(completed, week_length),
        streak=streak or 0,
    )


def compute_weekly_stats(habits: list[Habit], entries: list[Entry],
                         streaks: list[Streak], week_length: int = 7) -> WeeklySummary:
    """Aggregate one week of entries into per-habit stats and a composite score.

    Best/worst come from a stable descending sort on completion rate, so
    ties keep input order: best is the first of the top group, worst the
    last of the bottom group.
    """
    habit_stats = [_habit_stat(h, entries, streaks, week_length) for h in habits]

    total_possible = len(habits) * max(week_length, 0)
    total_completed = sum(1 for e in entries if e.completed)
    overall = _percent(total_completed, total_possible)

    ranked = sorted(habit_stats, key=lambda s: s.completion_rate, reverse=True)
    best = ranked[0] if ranked else None
    worst = ranked[-1] if ranked else None

    streak_term = 0.0
    if total_possible > 0:
        credit = sum(max(0, min(s.current_streak, week_length)) for s in streaks)
        streak_term = credit / total_possible * 100 * STREAK_WEIGHT
    score = max(0, min(100, round_half_up(overall * RATE_WEIGHT + streak_term)))

    return WeeklySummary(
        total_habits=len(habits),
        total_possible=total_possible,
        total_completed=total_completed,
        completion_rate=overall,
        score=score,
        best_habit=best,
        worst_habit=worst,
        habit_stats=habit_stats,
    )
