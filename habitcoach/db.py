"""SQLite database layer — habits, daily entries, streaks and cached insights.

Lightweight schema. Tables are created automatically on first run.
Every call opens its own connection, so the store can be read from
several threads at once (the coach fans reads out with asyncio.to_thread).
"""

import json
import sqlite3
import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from habitcoach.models import Entry, Habit, Streak

logger = logging.getLogger(__name__)


class HabitStore:
    """Read/write access to one SQLite file."""

    def __init__(self, db_path: Path, timezone_offset_hours: int = 0):
        self.db_path = Path(db_path)
        self.tz = timezone(timedelta(hours=timezone_offset_hours))

    def _connect(self) -> sqlite3.Connection:
        """Return a connection with row_factory set."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _now(self) -> str:
        return datetime.now(self.tz).isoformat()

    def today(self) -> date:
        return datetime.now(self.tz).date()

    def init_db(self) -> None:
        """Create tables if they don't exist."""
        conn = self._connect()
        conn.executescript("""
            -- Habits (defined by user)
            CREATE TABLE IF NOT EXISTS habits (
                id          INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id     TEXT    NOT NULL,
                name        TEXT    NOT NULL,
                icon        TEXT    NOT NULL DEFAULT '',
                is_archived INTEGER NOT NULL DEFAULT 0,
                created_at  TEXT    NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_habits_user
                ON habits(user_id, is_archived);

            -- One row per habit per day
            CREATE TABLE IF NOT EXISTS habit_entries (
                id         INTEGER PRIMARY KEY AUTOINCREMENT,
                habit_id   INTEGER NOT NULL REFERENCES habits(id),
                user_id    TEXT    NOT NULL,
                date       TEXT    NOT NULL,
                completed  INTEGER NOT NULL DEFAULT 1,
                UNIQUE (habit_id, date)
            );
            CREATE INDEX IF NOT EXISTS idx_entries_user_date
                ON habit_entries(user_id, date);

            -- Current streak per habit (recomputed on every entry write)
            CREATE TABLE IF NOT EXISTS streaks (
                habit_id       INTEGER PRIMARY KEY REFERENCES habits(id),
                user_id        TEXT    NOT NULL,
                current_streak INTEGER NOT NULL DEFAULT 0,
                updated_at     TEXT    NOT NULL
            );

            -- Generated coaching, cached per day
            CREATE TABLE IF NOT EXISTS ai_insights (
                id           INTEGER PRIMARY KEY AUTOINCREMENT,
                user_id      TEXT    NOT NULL,
                insight_type TEXT    NOT NULL,
                content      TEXT    NOT NULL,
                date         TEXT    NOT NULL,
                created_at   TEXT    NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_insights_user
                ON ai_insights(user_id, insight_type, date);
        """)
        conn.close()
        logger.info("Database initialized at %s", self.db_path)

    # ═══════════════════════════════════════════════════════════════════════
    # Habits
    # ═══════════════════════════════════════════════════════════════════════

    def create_habit(self, user_id: str, name: str, icon: str = "") -> int:
        """Create a new habit. Returns habit id."""
        conn = self._connect()
        cur = conn.execute(
            "INSERT INTO habits (user_id, name, icon, created_at) VALUES (?, ?, ?, ?)",
            (user_id, name, icon, self._now()),
        )
        conn.commit()
        hid = cur.lastrowid
        conn.close()
        return hid

    def archive_habit(self, habit_id: int) -> None:
        conn = self._connect()
        conn.execute("UPDATE habits SET is_archived = 1 WHERE id = ?", (habit_id,))
        conn.commit()
        conn.close()

    def get_active_habits(self, user_id: str) -> list[Habit]:
        conn = self._connect()
        rows = conn.execute(
            "SELECT id, user_id, name, icon, is_archived FROM habits "
            "WHERE user_id = ? AND is_archived = 0 ORDER BY id",
            (user_id,),
        ).fetchall()
        conn.close()
        return [
            Habit(id=r["id"], name=r["name"], icon=r["icon"],
                  archived=bool(r["is_archived"]), user_id=r["user_id"])
            for r in rows
        ]

    # ═══════════════════════════════════════════════════════════════════════
    # Entries
    # ═══════════════════════════════════════════════════════════════════════

    def set_entry(self, user_id: str, habit_id: int, day: date,
                  completed: bool = True) -> None:
        """Record (or overwrite) a habit's status for one day, then refresh its streak."""
        conn = self._connect()
        conn.execute(
            """INSERT INTO habit_entries (habit_id, user_id, date, completed)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(habit_id, date) DO UPDATE SET completed = excluded.completed""",
            (habit_id, user_id, day.isoformat(), int(completed)),
        )
        streak = self._compute_streak(conn, habit_id, self.today())
        conn.execute(
            """INSERT INTO streaks (habit_id, user_id, current_streak, updated_at) VALUES (?, ?, ?, ?)
               ON CONFLICT(habit_id) DO UPDATE SET
                   current_streak = excluded.current_streak, updated_at = excluded.updated_at""",
            (habit_id, user_id, streak, self._now()),
        )
        conn.commit()
        conn.close()

    def get_entries(self, user_id: str, start: date,
                    end: date | None = None) -> list[Entry]:
        """Entries on or after start (and on or before end, when given)."""
        sql = (
            "SELECT e.habit_id, e.date, e.completed, h.name, h.icon "
            "FROM habit_entries e LEFT JOIN habits h ON h.id = e.habit_id "
            "WHERE e.user_id = ? AND e.date >= ?"
        )
        params: list = [user_id, start.isoformat()]
        if end is not None:
            sql += " AND e.date <= ?"
            params.append(end.isoformat())
        sql += " ORDER BY e.date, e.habit_id"

        conn = self._connect()
        rows = conn.execute(sql, params).fetchall()
        conn.close()
        return [
            Entry(habit_id=r["habit_id"], date=date.fromisoformat(r["date"]),
                  completed=bool(r["completed"]), habit_name=r["name"],
                  habit_icon=r["icon"])
            for r in rows
        ]

    # ═══════════════════════════════════════════════════════════════════════
    # Streaks
    # ═══════════════════════════════════════════════════════════════════════

    def get_streaks(self, user_id: str) -> list[Streak]:
        conn = self._connect()
        rows = conn.execute(
            "SELECT s.habit_id, s.current_streak, h.name "
            "FROM streaks s LEFT JOIN habits h ON h.id = s.habit_id "
            "WHERE s.user_id = ? ORDER BY s.habit_id",
            (user_id,),
        ).fetchall()
        conn.close()
        return [
            Streak(habit_id=r["habit_id"], current_streak=r["current_streak"],
                   habit_name=r["name"])
            for r in rows
        ]

    @staticmethod
    def _compute_streak(conn: sqlite3.Connection, habit_id: int, today: date) -> int:
        """Count consecutive completed days, ending on today or yesterday."""
        rows = conn.execute(
            "SELECT date FROM habit_entries WHERE habit_id = ? AND completed = 1",
            (habit_id,),
        ).fetchall()
        done = {date.fromisoformat(r["date"]) for r in rows}

        streak = 0
        check = today
        # Allow today OR yesterday as starting point
        if check not in done:
            check = today - timedelta(days=1)
        while check in done:
            streak += 1
            check -= timedelta(days=1)
        return streak

    # ═══════════════════════════════════════════════════════════════════════
    # Insight cache
    # ═══════════════════════════════════════════════════════════════════════

    def save_insight(self, user_id: str, insight_type: str, content: dict,
                     day: date) -> int:
        conn = self._connect()
        cur = conn.execute(
            """INSERT INTO ai_insights (user_id, insight_type, content, date, created_at)
               VALUES (?, ?, ?, ?, ?)""",
            (user_id, insight_type, json.dumps(content, ensure_ascii=False),
             day.isoformat(), self._now()),
        )
        conn.commit()
        iid = cur.lastrowid
        conn.close()
        return iid

    def get_insights(self, user_id: str, insight_type: str = "",
                     limit: int = 20) -> list[dict]:
        """Most recent cached insights first."""
        sql = "SELECT id, insight_type, content, date FROM ai_insights WHERE user_id = ?"
        params: list = [user_id]
        if insight_type:
            sql += " AND insight_type = ?"
            params.append(insight_type)
        sql += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        conn = self._connect()
        rows = conn.execute(sql, params).fetchall()
        conn.close()
        return [
            {"id": r["id"], "insight_type": r["insight_type"],
             "content": json.loads(r["content"]), "date": r["date"]}
            for r in rows
        ]
