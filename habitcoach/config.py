"""Configuration — loads environment variables with sensible defaults.

All tunables live here. Override via .env file or environment variables.
Values are resolved once into a Settings object that is handed to the
store, the LLM factory and the coach service at construction time.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import find_dotenv, load_dotenv

DEFAULT_DB_PATH = Path("data") / "habitcoach.db"

# Load .env from the working directory (or the nearest parent that has one)
load_dotenv(find_dotenv(usecwd=True))

def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def _env_int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))

def _env_float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


@dataclass(frozen=True)
class Settings:
    # ═══════════════════════════════════════════════════════════════════════
    # LLM chat model
    # ═══════════════════════════════════════════════════════════════════════
    # chat_provider tells the framework which SDK to use:
    #   "openai"       : OpenAI SDK (also works with DeepSeek, Ollama, Groq, etc.)
    #   "azure_openai" : Azure OpenAI SDK
    #   "anthropic"    : Anthropic SDK
    chat_provider: str = "openai"
    chat_api_key: str = ""
    chat_model: str = "gpt-4o-mini"
    chat_base_url: str = ""
    azure_api_version: str = "2024-12-01-preview"

    # ═══════════════════════════════════════════════════════════════════════
    # Generation budgets
    # ═══════════════════════════════════════════════════════════════════════
    coach_max_tokens: int = 300
    coach_temperature: float = 0.8
    weekly_max_tokens: int = 400
    weekly_temperature: float = 0.7

    # ═══════════════════════════════════════════════════════════════════════
    # Metrics window
    # ═══════════════════════════════════════════════════════════════════════
    # week_length is the denominator of every rate; lookback_days sets the
    # first fetched date as today - lookback_days (inclusive).
    week_length: int = 7
    lookback_days: int = 7

    # ═══════════════════════════════════════════════════════════════════════
    # Storage / server
    # ═══════════════════════════════════════════════════════════════════════
    # Relative paths resolve against the working directory
    db_path: Path = DEFAULT_DB_PATH
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Timezone (default UTC); defines what "today" means
    timezone_offset_hours: int = 0


def load_settings() -> Settings:
    """Read the environment (and .env) into a Settings instance."""
    db_path = _env("HABITCOACH_DB_PATH")
    return Settings(
        chat_provider=_env("CHAT_PROVIDER", "openai"),
        chat_api_key=_env("CHAT_API_KEY"),
        chat_model=_env("CHAT_MODEL", "gpt-4o-mini"),
        chat_base_url=_env("CHAT_BASE_URL"),
        azure_api_version=_env("AZURE_API_VERSION", "2024-12-01-preview"),
        coach_max_tokens=_env_int("COACH_MAX_TOKENS", 300),
        coach_temperature=_env_float("COACH_TEMPERATURE", 0.8),
        weekly_max_tokens=_env_int("WEEKLY_MAX_TOKENS", 400),
        weekly_temperature=_env_float("WEEKLY_TEMPERATURE", 0.7),
        week_length=_env_int("WEEK_LENGTH", 7),
        lookback_days=_env_int("LOOKBACK_DAYS", 7),
        db_path=Path(db_path) if db_path else DEFAULT_DB_PATH,
        host=_env("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8000),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        timezone_offset_hours=_env_int("TIMEZONE_OFFSET_HOURS", 0),
    )
