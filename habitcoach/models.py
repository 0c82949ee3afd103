"""Plain data types shared by the store, the metrics engine and the API.

Raw records (Habit, Entry, Streak) come from the store. Derived values
(HabitStat, WeeklySummary, DailySnapshot) are computed per request.
"""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class Habit:
    id: int
    name: str
    icon: str = ""
    archived: bool = False
    user_id: str = ""


@dataclass(frozen=True)
class Entry:
    """One day of one habit. habit_name/habit_icon are joined in by the store."""
    habit_id: int
    date: date
    completed: bool
    habit_name: str | None = None
    habit_icon: str | None = None


@dataclass(frozen=True)
class Streak:
    habit_id: int
    current_streak: int = 0
    habit_name: str | None = None


@dataclass(frozen=True)
class HabitStat:
    name: str
    icon: str
    completed_count: int
    completion_rate: int
    streak: int

    def to_dict(self) -> dict:
        """JSON shape used by the HTTP API and the insight cache."""
        return {
            "name": self.name,
            "icon": self.icon,
            "completedCount": self.completed_count,
            "completionRate": self.completion_rate,
            "streak": self.streak,
        }


@dataclass(frozen=True)
class WeeklySummary:
    total_habits: int
    total_possible: int
    total_completed: int
    completion_rate: int
    score: int
    best_habit: HabitStat | None
    worst_habit: HabitStat | None
    habit_stats: list[HabitStat] = field(default_factory=list)


@dataclass(frozen=True)
class DailySnapshot:
    completed_today: int
    total_habits: int
    best_streak: int
