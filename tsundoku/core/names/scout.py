"""
Name scouting: ask the model for character names in each chunk of text.

collect_names() is an async generator that yields one batch per chunk, so a
caller can record and save each batch before the next request is made.
"""

import json
from typing import Any, AsyncIterator, List, Optional

from prompts.prompts import NAME_SCOUT_SYSTEM_PROMPT
from tsundoku.config import NameScoutSettings
from tsundoku.core.chunking import split_text_into_chunks
from tsundoku.core.events import EventBus, EventType
from tsundoku.core.exceptions import LLMError, NameExtractionParseError
from tsundoku.core.llm.base import LLMProvider
from tsundoku.core.llm.utils.extraction import JsonObjectExtractor
from tsundoku.core.llm.utils.refusal import is_refusal
from tsundoku.core.names.models import NameEntry, NamePart
from tsundoku.core.retry import RetryConfig, pause
from tsundoku.utils.unified_logger import UnifiedLogger

_extractor = JsonObjectExtractor()


def build_chapter_payload(number: int, title: str, content: str) -> str:
    """Text sent to the scout for one chapter."""
    return f"### Chapter {number} - {title}\n{content}"


def _as_text(value: Any, field: str, raw: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise NameExtractionParseError(f"'{field}' must be a string", raw)
    return value.strip()


def parse_response(raw: str) -> List[NameEntry]:
    """
    Parse a scout response into name candidates.

    Candidates with an empty original or English text are dropped and an
    unrecognised part becomes UNKNOWN.

    Raises:
        NameExtractionParseError: no JSON object, invalid JSON or wrong shape
    """
    json_text = _extractor.extract(raw)
    if json_text is None:
        raise NameExtractionParseError("No JSON object in response", raw)

    try:
        document = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise NameExtractionParseError(f"Invalid JSON: {e.msg}", raw) from e

    if not isinstance(document, dict) or not isinstance(document.get("names"), list):
        raise NameExtractionParseError("Expected an object with a 'names' list", raw)

    entries = []
    for item in document["names"]:
        if not isinstance(item, dict):
            raise NameExtractionParseError("Each name must be an object", raw)
        original = _as_text(item.get("original"), "original", raw)
        english = _as_text(item.get("english"), "english", raw)
        if not original or not english:
            continue
        entries.append(NameEntry(original=original, english=english, part=NamePart.parse(item.get("part"))))
    return entries


class NameScout:
    """
    Extracts name candidates with a non-streaming model call per chunk.

    Args:
        provider: Generation capability
        settings: Chunk size, delay and attempt count
        system_prompt: Extraction instructions
        logger: Console logger
        event_bus: Receives NAME_BATCH and SCOUT_CHUNK_FAILED events
    """

    def __init__(
        self,
        provider: LLMProvider,
        settings: Optional[NameScoutSettings] = None,
        system_prompt: str = NAME_SCOUT_SYSTEM_PROMPT,
        logger: Optional[UnifiedLogger] = None,
        event_bus: Optional[EventBus] = None,
    ):
        self.provider = provider
        self.settings = settings or NameScoutSettings()
        self.system_prompt = system_prompt
        self.logger = logger or UnifiedLogger(console_output=False)
        self.event_bus = event_bus or EventBus()
        self.retry = RetryConfig(
            max_attempts=max(1, self.settings.json_retries),
            initial_delay=self.settings.retry_base_delay,
        )

    async def _request(self, chunk: str) -> str:
        await pause(self.settings.delay_between_requests)
        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": chunk},
        ]
        response = await self.provider.generate(messages)
        return response.content

    async def _scout_chunk(self, chunk: str, index: int, total: int) -> Optional[List[NameEntry]]:
        """Names in one chunk, or None once every attempt has failed."""
        attempts = self.retry.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                raw = await self._request(chunk)
                if not raw.strip() or is_refusal(raw):
                    raise NameExtractionParseError("Empty or refused response", raw)
                return parse_response(raw)
            except (LLMError, NameExtractionParseError) as e:
                self.logger.debug(f"Name scout chunk {index}/{total} attempt {attempt}/{attempts} failed: {e}")
                if attempt < attempts:
                    await self.retry.wait(attempt)

        self.logger.warning(f"Failed to process chunk {index} after {attempts} attempts")
        self.event_bus.emit(EventType.SCOUT_CHUNK_FAILED, source="name_scout",
                            chunk_index=index, total_chunks=total, attempts=attempts)
        return None

    async def collect_names(self, text: str, chunk_size: Optional[int] = None) -> AsyncIterator[List[NameEntry]]:
        """
        Yield one list of name candidates per chunk of text, in order.

        Chunks whose attempts are all used up are skipped.
        """
        chunks = split_text_into_chunks(text, chunk_size or self.settings.chunk_size_chars)
        total = len(chunks)
        for index, chunk in enumerate(chunks, 1):
            batch = await self._scout_chunk(chunk, index, total)
            if batch is None:
                continue
            self.event_bus.emit(EventType.NAME_BATCH, source="name_scout",
                                chunk_index=index, total_chunks=total, names=len(batch))
            yield batch
