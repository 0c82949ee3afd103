"""Tests for the database layer."""

from datetime import timedelta

import pytest

from habitcoach.db import HabitStore


@pytest.fixture
def store(tmp_path):
    """A fresh database for each test."""
    s = HabitStore(tmp_path / "test.db")
    s.init_db()
    return s


class TestHabits:
    def test_create_and_list(self, store):
        hid = store.create_habit("u1", "Read", "📚")
        assert hid > 0
        habits = store.get_active_habits("u1")
        assert len(habits) == 1
        assert habits[0].name == "Read"
        assert habits[0].icon == "📚"
        assert habits[0].archived is False

    def test_archived_excluded(self, store):
        keep = store.create_habit("u1", "Read")
        gone = store.create_habit("u1", "Smoke less")
        store.archive_habit(gone)
        assert [h.id for h in store.get_active_habits("u1")] == [keep]

    def test_user_isolation(self, store):
        store.create_habit("u1", "A")
        store.create_habit("u2", "B")
        assert [h.name for h in store.get_active_habits("u2")] == ["B"]

    def test_empty(self, store):
        assert store.get_active_habits("nobody") == []


class TestEntries:
    def test_range_is_inclusive(self, store):
        hid = store.create_habit("u1", "Read")
        today = store.today()
        for i in range(10):
            store.set_entry("u1", hid, today - timedelta(days=i))
        start = today - timedelta(days=7)
        entries = store.get_entries("u1", start, today)
        assert len(entries) == 8
        assert entries[0].date == start
        assert entries[-1].date == today

    def test_open_ended_range(self, store):
        hid = store.create_habit("u1", "Read")
        today = store.today()
        store.set_entry("u1", hid, today + timedelta(days=1))
        assert len(store.get_entries("u1", today)) == 1
        assert store.get_entries("u1", today, today) == []

    def test_upsert_one_per_day(self, store):
        hid = store.create_habit("u1", "Read")
        today = store.today()
        store.set_entry("u1", hid, today, completed=True)
        store.set_entry("u1", hid, today, completed=False)
        entries = store.get_entries("u1", today)
        assert len(entries) == 1
        assert entries[0].completed is False

    def test_joined_habit_name(self, store):
        hid = store.create_habit("u1", "Run", "🏃")
        store.set_entry("u1", hid, store.today())
        e = store.get_entries("u1", store.today())[0]
        assert e.habit_name == "Run"
        assert e.habit_icon == "🏃"


class TestStreaks:
    def test_no_streak_rows(self, store):
        store.create_habit("u1", "Read")
        assert store.get_streaks("u1") == []

    def test_consecutive_days(self, store):
        hid = store.create_habit("u1", "Read")
        today = store.today()
        for i in range(3):
            store.set_entry("u1", hid, today - timedelta(days=i))
        streaks = store.get_streaks("u1")
        assert len(streaks) == 1
        assert streaks[0].current_streak == 3
        assert streaks[0].habit_name == "Read"

    def test_streak_from_yesterday(self, store):
        hid = store.create_habit("u1", "Read")
        today = store.today()
        store.set_entry("u1", hid, today - timedelta(days=1))
        store.set_entry("u1", hid, today - timedelta(days=2))
        assert store.get_streaks("u1")[0].current_streak == 2

    def test_gap_breaks_streak(self, store):
        hid = store.create_habit("u1", "Read")
        today = store.today()
        store.set_entry("u1", hid, today - timedelta(days=3))
        store.set_entry("u1", hid, today)
        assert store.get_streaks("u1")[0].current_streak == 1

    def test_uncompleted_day_breaks_streak(self, store):
        hid = store.create_habit("u1", "Read")
        today = store.today()
        store.set_entry("u1", hid, today - timedelta(days=1))
        store.set_entry("u1", hid, today, completed=False)
        assert store.get_streaks("u1")[0].current_streak == 1
        store.set_entry("u1", hid, today - timedelta(days=1), completed=False)
        assert store.get_streaks("u1")[0].current_streak == 0


class TestInsights:
    def test_save_and_get(self, store):
        day = store.today()
        iid = store.save_insight("u1", "daily_motivation", {"text": "Go!"}, day)
        assert iid > 0
        items = store.get_insights("u1")
        assert items[0]["content"] == {"text": "Go!"}
        assert items[0]["date"] == day.isoformat()

    def test_filter_by_type(self, store):
        day = store.today()
        store.save_insight("u1", "pattern", {"text": "a"}, day)
        store.save_insight("u1", "weekly_summary", {"score": 50}, day)
        items = store.get_insights("u1", insight_type="weekly_summary")
        assert len(items) == 1
        assert items[0]["content"]["score"] == 50

    def test_newest_first(self, store):
        day = store.today()
        store.save_insight("u1", "pattern", {"n": 1}, day)
        store.save_insight("u1", "pattern", {"n": 2}, day)
        assert [i["content"]["n"] for i in store.get_insights("u1")] == [2, 1]
