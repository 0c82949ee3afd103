"""Tests for settings loading from the environment."""

from pathlib import Path

from habitcoach.config import load_settings


class TestLoadSettings:
    def test_defaults(self, monkeypatch):
        for key in ("CHAT_PROVIDER", "CHAT_MODEL", "WEEK_LENGTH", "LOOKBACK_DAYS",
                    "HABITCOACH_DB_PATH", "PORT"):
            monkeypatch.delenv(key, raising=False)
        s = load_settings()
        assert s.chat_provider == "openai"
        assert s.chat_model == "gpt-4o-mini"
        assert s.week_length == 7
        assert s.lookback_days == 7
        assert s.port == 8000
        assert s.db_path.name == "habitcoach.db"

    def test_default_db_path_is_relative_to_cwd(self, monkeypatch):
        monkeypatch.delenv("HABITCOACH_DB_PATH", raising=False)
        s = load_settings()
        assert not s.db_path.is_absolute()
        assert s.db_path == Path("data") / "habitcoach.db"

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHAT_PROVIDER", "anthropic")
        monkeypatch.setenv("LOOKBACK_DAYS", "6")
        monkeypatch.setenv("WEEKLY_TEMPERATURE", "0.2")
        monkeypatch.setenv("HABITCOACH_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("LOG_LEVEL", "debug")
        s = load_settings()
        assert s.chat_provider == "anthropic"
        assert s.lookback_days == 6
        assert s.weekly_temperature == 0.2
        assert s.db_path == Path(tmp_path / "x.db")
        assert s.log_level == "DEBUG"
