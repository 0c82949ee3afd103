"""Insight request shaping — what data each coaching request sends to the LLM.

Each insight type selects a fixed set of fields from the user's records and
derived metrics. The payload is rendered into the user instruction; the
system instruction comes from prompts/<type>.md.

Weekly summaries expect JSON back. parse_weekly_insight() returns either a
StructuredInsight or a FallbackInsight carrying the raw text, never raises.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum

from habitcoach.models import (
    DailySnapshot, Entry, Habit, HabitStat, Streak, WeeklySummary,
)

log = logging.getLogger(__name__)


class InsightType(str, Enum):
    DAILY_MOTIVATION = "daily_motivation"
    SUGGESTIONS = "suggestions"
    PATTERN = "pattern"
    WEEKLY_SUMMARY = "weekly_summary"


# Types served by the on-demand coach endpoint
COACH_TYPES = (
    InsightType.DAILY_MOTIVATION,
    InsightType.SUGGESTIONS,
    InsightType.PATTERN,
)


def _entry_rows(entries: list[Entry]) -> list[dict]:
    return [
        {"habit": e.habit_name, "date": e.date.isoformat(), "completed": e.completed}
        for e in entries
    ]


def _stat(stat: HabitStat | None) -> dict | None:
    return stat.to_dict() if stat else None


def build_payload(insight_type: InsightType, habits: list[Habit],
                  entries: list[Entry], streaks: list[Streak],
                  snapshot: DailySnapshot | None = None,
                  summary: WeeklySummary | None = None) -> dict:
    """Select the fields an insight type needs.

    daily_motivation needs `snapshot`; weekly_summary needs `summary`.
    """
    insight_type = InsightType(insight_type)

    if insight_type is InsightType.DAILY_MOTIVATION:
        if snapshot is None:
            raise ValueError("daily_motivation payload needs a DailySnapshot")
        return {
            "total_habits": snapshot.total_habits,
            "completed_today": snapshot.completed_today,
            "best_streak": snapshot.best_streak,
            "habit_names": [h.name for h in habits],
        }

    if insight_type is InsightType.SUGGESTIONS:
        return {
            "habits": [h.name for h in habits],
            "entries": _entry_rows(entries),
            "streaks": [
                {"habit": s.habit_name, "current": s.current_streak} for s in streaks
            ],
        }

    if insight_type is InsightType.PATTERN:
        return {"entries": _entry_rows(entries)}

    if summary is None:
        raise ValueError("weekly_summary payload needs a WeeklySummary")
    return {
        "total_habits": summary.total_habits,
        "completion_rate": summary.completion_rate,
        "total_completed": summary.total_completed,
        "total_possible": summary.total_possible,
        "score": summary.score,
        "best_habit": _stat(summary.best_habit),
        "worst_habit": _stat(summary.worst_habit),
        "habit_stats": [s.to_dict() for s in summary.habit_stats],
    }


def _habit_line(stat: dict | None) -> str:
    if not stat:
        return "None"
    return f"{stat['name']} ({stat['completionRate']}%)"


def render_user_prompt(insight_type: InsightType, payload: dict) -> str:
    """Render a payload into the user instruction sent with the system prompt."""
    insight_type = InsightType(insight_type)

    if insight_type is InsightType.DAILY_MOTIVATION:
        total = payload["total_habits"]
        return (
            "User data today:\n"
            f"- Total habits: {total}\n"
            f"- Completed today: {payload['completed_today']}/{total}\n"
            f"- Best current streak: {payload['best_streak']} days\n"
            f"- Habit names: {', '.join(payload['habit_names'])}\n"
            "Give a personalized motivational message."
        )

    if insight_type is InsightType.SUGGESTIONS:
        return (
            f"User habits: {json.dumps(payload['habits'], ensure_ascii=False)}\n"
            f"Week entries: {json.dumps(payload['entries'], ensure_ascii=False)}\n"
            f"Streaks: {json.dumps(payload['streaks'], ensure_ascii=False)}\n"
            "Give 3 specific improvement suggestions."
        )

    if insight_type is InsightType.PATTERN:
        return f"Analyze this week data: {json.dumps(payload['entries'], ensure_ascii=False)}"

    return (
        "Weekly Analysis:\n"
        f"- Total habits: {payload['total_habits']}\n"
        f"- Completion rate: {payload['completion_rate']}%\n"
        f"- Total completed: {payload['total_completed']}/{payload['total_possible']}\n"
        f"- Score: {payload['score']}/100\n"
        "\n"
        f"Best habit: {_habit_line(payload['best_habit'])}\n"
        f"Worst habit: {_habit_line(payload['worst_habit'])}\n"
        "\n"
        f"Habit details: {json.dumps(payload['habit_stats'], ensure_ascii=False)}\n"
        "\n"
        "Generate encouraging weekly summary with specific insights."
    )


# ═══════════════════════════════════════════════════════════════════════════
# Generated weekly insight
# ═══════════════════════════════════════════════════════════════════════════

FALLBACK_TIP = "Start small, stay consistent! 🚀"


def _best_praise(summary: WeeklySummary) -> str:
    if summary.best_habit:
        return f"Great work on {summary.best_habit.name}! 🎉"
    return "Keep building your habits! 💪"


def _worst_advice(summary: WeeklySummary) -> str:
    if summary.worst_habit:
        return f"Try to improve {summary.worst_habit.name} next week 💡"
    return "Focus on consistency 🎯"


@dataclass(frozen=True)
class StructuredInsight:
    """The model answered with a JSON object."""
    summary: str
    best_habit: str | None = None
    worst_habit: str | None = None
    tip: str | None = None

    def to_fields(self, stats: WeeklySummary) -> dict:
        # Keys the model left out get the same phrasing as the fallback
        return {
            "summary": self.summary,
            "bestHabitPraise": self.best_habit or _best_praise(stats),
            "worstHabitAdvice": self.worst_habit or _worst_advice(stats),
            "tip": self.tip or FALLBACK_TIP,
        }


@dataclass(frozen=True)
class FallbackInsight:
    """The model answered with something that is not a JSON object."""
    raw_text: str

    def to_fields(self, stats: WeeklySummary) -> dict:
        return {
            "summary": self.raw_text,
            "bestHabitPraise": _best_praise(stats),
            "worstHabitAdvice": _worst_advice(stats),
            "tip": FALLBACK_TIP,
        }


GeneratedInsight = StructuredInsight | FallbackInsight


def _text(value) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)


def parse_weekly_insight(text: str) -> GeneratedInsight:
    """Parse the weekly-summary completion; anything but a JSON object falls back."""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        log.warning("Weekly insight is not valid JSON, using fallback phrasing")
        return FallbackInsight(raw_text=text or "")

    if not isinstance(data, dict):
        log.warning("Weekly insight JSON is %s, not an object", type(data).__name__)
        return FallbackInsight(raw_text=text)

    return StructuredInsight(
        summary=_text(data.get("summary")) or "",
        best_habit=_text(data.get("bestHabit")),
        worst_habit=_text(data.get("worstHabit")),
        tip=_text(data.get("tip")),
    )
