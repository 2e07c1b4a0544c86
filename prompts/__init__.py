"""
Prompts module for tsundoku
"""
from prompts.prompts import (
    PromptSet,
    TITLE_SYSTEM_PROMPT,
    CONTENT_SYSTEM_PROMPT,
    NAME_SCOUT_SYSTEM_PROMPT,
    load_prompts,
)

__all__ = [
    "PromptSet",
    "TITLE_SYSTEM_PROMPT",
    "CONTENT_SYSTEM_PROMPT",
    "NAME_SCOUT_SYSTEM_PROMPT",
    "load_prompts",
]
