"""Tests for prompt_loader — packaged prompt files and system prompt assembly."""

from pathlib import Path

import pytest

import habitcoach.prompt_loader as prompt_loader
from habitcoach.insights import InsightType
from habitcoach.prompt_loader import PromptNotFound, read_prompt, system_prompt


class TestPackagedPrompts:
    def test_prompts_live_inside_package(self):
        package_dir = Path(prompt_loader.__file__).resolve().parent
        assert prompt_loader.PROMPTS_DIR == package_dir / "prompts"

    @pytest.mark.parametrize("insight_type", list(InsightType))
    def test_every_insight_type_has_a_prompt(self, insight_type):
        assert read_prompt(insight_type.value) != ""

    def test_weekly_prompt_asks_for_json_keys(self):
        text = system_prompt("weekly_summary")
        assert text != ""
        assert "bestHabit" in text
        assert "worstHabit" in text


class TestSystemPrompt:
    def test_voice_comes_first(self):
        text = system_prompt("pattern")
        voice, task = text.split("\n\n---\n\n")
        assert "habit coach" in voice.lower()
        assert task == read_prompt("pattern")


class TestMissingPrompts:
    def test_unknown_prompt_raises(self):
        with pytest.raises(PromptNotFound):
            read_prompt("does_not_exist")

    def test_deleted_file_served_from_cache(self, tmp_path, monkeypatch):
        (tmp_path / "temp.md").write_text("cached body\n", encoding="utf-8")
        monkeypatch.setattr(prompt_loader, "PROMPTS_DIR", tmp_path)
        assert read_prompt("temp") == "cached body"
        (tmp_path / "temp.md").unlink()
        assert read_prompt("temp") == "cached body"
