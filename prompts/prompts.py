"""
System prompts for title translation, content translation and name scouting.

Each prompt can be overridden by a text file in <config dir>/prompts/:
title.txt, content.txt and name_scout.txt.
"""

from pathlib import Path
from typing import NamedTuple, Optional


class PromptSet(NamedTuple):
    """The three system prompts used during a run."""
    title: str
    content: str
    name_scout: str


# ============================================================================
# DEFAULT PROMPTS
# ============================================================================

TITLE_SYSTEM_PROMPT = (
    "You are a Japanese to English translator. Translate the following Japanese "
    "novel title to English. Provide only the translated title, nothing else."
)

CONTENT_SYSTEM_PROMPT = (
    "You are a Japanese to English translator specializing in web novels. "
    "Translate the following Japanese text to natural English, preserving the "
    "author's style and tone. Character names have already been converted to "
    "English - do not change them."
)

NAME_SCOUT_SYSTEM_PROMPT = (
    "You read Japanese fiction text and extract character name parts.\n"
    "Return ONLY JSON with this shape:\n"
    '{"names":[{"original":"<exact name characters>","part":"family|given|unknown",'
    '"english":"<best English rendering>"}]}\n'
    "Treat given and family names separately. Use romaji or common English "
    "equivalents. No explanations."
)


def _read_override(directory: Path, name: str) -> Optional[str]:
    path = directory / f"{name}.txt"
    if not path.is_file():
        return None
    text = path.read_text(encoding="utf-8").strip()
    return text or None


def load_prompts(config_dir: Optional[Path] = None) -> PromptSet:
    """Default prompts, replaced by any non-empty override files."""
    if config_dir is None:
        return PromptSet(TITLE_SYSTEM_PROMPT, CONTENT_SYSTEM_PROMPT, NAME_SCOUT_SYSTEM_PROMPT)

    directory = Path(config_dir) / "prompts"
    return PromptSet(
        title=_read_override(directory, "title") or TITLE_SYSTEM_PROMPT,
        content=_read_override(directory, "content") or CONTENT_SYSTEM_PROMPT,
        name_scout=_read_override(directory, "name_scout") or NAME_SCOUT_SYSTEM_PROMPT,
    )
