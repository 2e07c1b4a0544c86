"""
LLM provider abstraction for OpenAI-compatible chat completion APIs.
"""

from tsundoku.core.llm.base import LLMProvider, LLMResponse, Message
from tsundoku.core.llm.providers.openai import OpenAICompatibleProvider, create_llm_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "Message",
    "OpenAICompatibleProvider",
    "create_llm_provider",
]
