"""Prompt loader — system prompts for each insight type.

Prompts ship inside the package (habitcoach/prompts/*.md). coach.md holds
the shared coaching voice; <insight_type>.md holds the task and reply
format. The system prompt for a request is voice + task.

Files are re-read on every call so edits apply without a restart; the last
good copy is kept in case a file disappears.
"""

import logging
from pathlib import Path

log = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
VOICE = "coach"

_cache: dict[str, str] = {}


class PromptNotFound(LookupError):
    pass


def read_prompt(name: str) -> str:
    """Read prompts/<name>.md, falling back to the last copy read."""
    path = PROMPTS_DIR / f"{name}.md"
    if path.exists():
        content = path.read_text(encoding="utf-8").strip()
        _cache[name] = content
        return content

    if name in _cache:
        log.warning("Prompt file missing, using cache: %s", name)
        return _cache[name]

    raise PromptNotFound(f"prompt not found: {path}")


def system_prompt(insight_type: str) -> str:
    """Coach voice followed by the task prompt for one insight type."""
    return f"{read_prompt(VOICE)}\n\n---\n\n{read_prompt(insight_type)}"
