"""Habit Coach — main entry point.

Boot sequence:
1. Settings from environment / .env
2. Database initialization
3. LLM client
4. HTTP server (uvicorn)
"""

import logging

import uvicorn

from habitcoach.coach import CoachService
from habitcoach.config import load_settings
from habitcoach.db import HabitStore
from habitcoach.llm import make_client
from habitcoach.server import create_app

log = logging.getLogger("habitcoach")


def build_app(settings=None):
    """Wire store, LLM and service into a FastAPI app."""
    settings = settings or load_settings()
    store = HabitStore(settings.db_path, settings.timezone_offset_hours)
    store.init_db()
    service = CoachService(settings, store, make_client(settings))
    return create_app(service)


def main():
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)-5s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    log.info("Habit Coach starting on %s:%d", settings.host, settings.port)
    app = build_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
