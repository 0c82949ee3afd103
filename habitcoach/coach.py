"""Coach service — orchestrates data fetch, metrics, LLM commentary and caching.

This is the glue that ties together:
- HabitStore (habits, entries, streaks reads; insight cache writes)
- Metrics engine (daily snapshot, weekly stats)
- Insight shaping + prompt loader (what the LLM sees)
- LLM provider (generated commentary)

Flow per request:
1. Validate user id / insight type
2. Fetch habits, entries and streaks concurrently, aborting on any failure
3. Compute metrics
4. Render prompts and call the LLM
5. Cache the result (failures only logged)
6. Return the response dict
"""

import asyncio
import logging
from datetime import date

from habitcoach.config import Settings
from habitcoach.db import HabitStore
from habitcoach.insights import (
    COACH_TYPES, InsightType, build_payload, parse_weekly_insight,
    render_user_prompt,
)
from habitcoach.llm import LLMProvider, build_messages
from habitcoach.metrics import compute_daily_snapshot, compute_weekly_stats, week_window
from habitcoach.models import Entry, Habit, Streak
from habitcoach.prompt_loader import system_prompt

log = logging.getLogger(__name__)


class CoachError(Exception):
    """Base class for errors surfaced to API callers."""


class ValidationError(CoachError):
    """Bad request input (HTTP 400)."""


class DataFetchError(CoachError):
    """A store read failed; carries which one."""

    def __init__(self, source: str, cause: BaseException):
        super().__init__(f"failed to fetch {source}: {cause}")
        self.source = source
        self.cause = cause


class CoachService:
    def __init__(self, settings: Settings, store: HabitStore, llm: LLMProvider):
        self.settings = settings
        self.store = store
        self.llm = llm

    # ═══════════════════════════════════════════════════════════════════════
    # Data fetch (fan-out / fan-in)
    # ═══════════════════════════════════════════════════════════════════════

    async def _fetch(self, source: str, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            raise DataFetchError(source, e) from e

    async def fetch_user_data(self, user_id: str, start: date,
                              end: date | None = None
                              ) -> tuple[list[Habit], list[Entry], list[Streak]]:
        """Read habits, entries in [start, end] and streaks concurrently."""
        habits, entries, streaks = await asyncio.gather(
            self._fetch("habits", self.store.get_active_habits, user_id),
            self._fetch("entries", self.store.get_entries, user_id, start, end),
            self._fetch("streaks", self.store.get_streaks, user_id),
        )
        log.debug("Fetched %d habits, %d entries, %d streaks for %s",
                  len(habits), len(entries), len(streaks), user_id)
        return habits, entries, streaks

    # ═══════════════════════════════════════════════════════════════════════
    # Helpers
    # ═══════════════════════════════════════════════════════════════════════

    async def _generate(self, insight_type: InsightType, user_prompt: str,
                        max_tokens: int, temperature: float) -> str:
        system = await asyncio.to_thread(system_prompt, insight_type.value)
        messages = build_messages(system, user_prompt)
        response = await asyncio.to_thread(
            self.llm.chat, messages, temperature=temperature, max_tokens=max_tokens,
        )
        log.info(
            "LLM [%s]: provider=%s model=%s tokens=%d finish=%s",
            insight_type.value, self.llm.provider_name(), response.model,
            response.total_tokens, response.finish_reason,
        )
        log.debug("LLM [%s] content: %s", insight_type.value, response.content)
        return response.content

    async def _cache(self, user_id: str, insight_type: str, content: dict,
                     day: date) -> None:
        try:
            await asyncio.to_thread(
                self.store.save_insight, user_id, insight_type, content, day,
            )
        except Exception as e:
            log.warning("Could not cache %s insight for %s: %s", insight_type, user_id, e)

    @staticmethod
    def _require_user(user_id) -> str:
        if not user_id:
            raise ValidationError("userId required")
        return str(user_id)

    # ═══════════════════════════════════════════════════════════════════════
    # Public operations
    # ═══════════════════════════════════════════════════════════════════════

    async def coach(self, user_id, insight_type, today: date | None = None) -> dict:
        """On-demand coaching: daily motivation, suggestions or pattern detection.

        Returns {"content": str, "type": str}. The generated text is passed
        through untouched, JSON or not.
        """
        user_id = self._require_user(user_id)
        try:
            kind = InsightType(insight_type)
        except ValueError:
            raise ValidationError(f"unknown insight type: {insight_type}") from None
        if kind not in COACH_TYPES:
            raise ValidationError(f"unknown insight type: {insight_type}")

        today = today or self.store.today()
        start, _ = week_window(today, self.settings.lookback_days)
        log.info("Coach request: user=%s type=%s", user_id, kind.value)

        habits, entries, streaks = await self.fetch_user_data(user_id, start)

        snapshot = compute_daily_snapshot(habits, entries, streaks, today)
        payload = build_payload(kind, habits, entries, streaks, snapshot=snapshot)
        content = await self._generate(
            kind, render_user_prompt(kind, payload),
            self.settings.coach_max_tokens, self.settings.coach_temperature,
        )

        await self._cache(user_id, kind.value, {"text": content}, today)
        return {"content": content, "type": kind.value}

    async def weekly_summary(self, user_id, today: date | None = None) -> dict:
        """Weekly stats plus generated commentary, cached as 'weekly_summary'."""
        user_id = self._require_user(user_id)
        today = today or self.store.today()
        start, end = week_window(today, self.settings.lookback_days)
        log.info("Weekly summary: user=%s range=%s..%s", user_id, start, end)

        habits, entries, streaks = await self.fetch_user_data(user_id, start, end)

        summary = compute_weekly_stats(habits, entries, streaks, self.settings.week_length)
        kind = InsightType.WEEKLY_SUMMARY
        payload = build_payload(kind, habits, entries, streaks, summary=summary)
        text = await self._generate(
            kind, render_user_prompt(kind, payload),
            self.settings.weekly_max_tokens, self.settings.weekly_temperature,
        )
        fields = parse_weekly_insight(text).to_fields(summary)

        result = {
            "summary": fields["summary"],
            "bestHabit": payload["best_habit"],
            "worstHabit": payload["worst_habit"],
            "score": summary.score,
            "completionRate": summary.completion_rate,
            "totalCompleted": summary.total_completed,
            "totalPossible": summary.total_possible,
            "habitStats": payload["habit_stats"],
            "aiInsights": {
                "bestHabitPraise": fields["bestHabitPraise"],
                "worstHabitAdvice": fields["worstHabitAdvice"],
                "tip": fields["tip"],
            },
            "weekRange": {"start": start.isoformat(), "end": end.isoformat()},
        }

        await self._cache(user_id, kind.value, result, end)
        return result
