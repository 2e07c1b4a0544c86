"""
Streaming chunk translator with refusal detection and bounded history.

Each call to Translator.translate() owns a fresh message history that starts
with the system prompt. Accepted exchanges are appended and the oldest
user/assistant pairs are dropped so the history never exceeds
1 + 2 * history_length messages.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from prompts.prompts import CONTENT_SYSTEM_PROMPT, TITLE_SYSTEM_PROMPT
from tsundoku.config import TranslationSettings
from tsundoku.core.chunking import split_text_into_chunks
from tsundoku.core.events import EventBus, EventType
from tsundoku.core.exceptions import LLMError, TranslationFailedError, TranslationRefusedError
from tsundoku.core.llm.base import LLMProvider, Message
from tsundoku.core.llm.utils.refusal import is_refusal
from tsundoku.core.retry import RetryConfig, pause
from tsundoku.utils.unified_logger import LogType, UnifiedLogger

FAILED_CHUNK_MARKER = "[TRANSLATION FAILED]"
CHUNK_JOINER = "\n\n"
PROGRESS_INTERVAL = 1.0
PREVIEW_LENGTH = 50


@dataclass
class ProgressInfo:
    """Position of the text being translated, for progress display."""
    chapter: int
    chunk: int = 1
    total_chunks: int = 1


@dataclass
class StreamProgress:
    """Snapshot of one streaming response."""
    chars: int
    chars_per_sec: float
    preview: str
    chapter: Optional[int] = None
    chunk: int = 1
    total_chunks: int = 1

    def describe(self) -> str:
        prefix = ""
        if self.chapter is not None:
            prefix = f"[Chapter {self.chapter}, Chunk {self.chunk}/{self.total_chunks}] "
        return f"{prefix}{self.chars} chars ({self.chars_per_sec:.1f} chars/s) ...{self.preview}"


def trim_history(history: List[Message], history_length: int) -> None:
    """Drop the oldest exchanges after the system message, in place."""
    max_messages = 1 + 2 * history_length
    excess = len(history) - max_messages
    if excess > 0:
        del history[1:1 + excess]


class Translator:
    """
    Translates titles and chapter content through a streaming provider.

    Args:
        provider: Generation capability
        settings: Chunk size, retries, delays and history length
        title_prompt: System prompt for titles
        content_prompt: System prompt for chapter content
        logger: Console logger
        event_bus: Receives STREAM_PROGRESS and chunk events
        clock: Monotonic time source
    """

    def __init__(
        self,
        provider: LLMProvider,
        settings: Optional[TranslationSettings] = None,
        title_prompt: str = TITLE_SYSTEM_PROMPT,
        content_prompt: str = CONTENT_SYSTEM_PROMPT,
        logger: Optional[UnifiedLogger] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.provider = provider
        self.settings = settings or TranslationSettings()
        self.title_prompt = title_prompt
        self.content_prompt = content_prompt
        self.logger = logger or UnifiedLogger(console_output=False)
        self.event_bus = event_bus or EventBus()
        self.clock = clock
        self.retry = RetryConfig(
            max_attempts=max(1, self.settings.retries),
            initial_delay=self.settings.retry_base_delay,
        )
        self._last_error: Optional[Exception] = None

    async def translate(self, text: str, is_title: bool = False,
                        progress: Optional[ProgressInfo] = None) -> str:
        """
        Translate a title or a block of chapter content.

        Content is chunked; a chunk that fails every attempt is kept in the
        output behind a failure marker and the remaining chunks still run.
        A title is a single unit and raises when every attempt fails.

        Raises:
            TranslationFailedError: title mode only, when all attempts fail
        """
        if not text.strip():
            return ""

        if is_title:
            snippet = text[:30]
            self.logger.step(f"Translating title 「{snippet}」")
            history: List[Message] = [{"role": "system", "content": self.title_prompt}]
            result = await self._translate_with_retries(text, history, progress)
            if result is None:
                raise TranslationFailedError(
                    f"Title translation failed after {self.retry.max_attempts} attempts",
                    attempts=self.retry.max_attempts,
                    last_error=self._last_error,
                )
            return result

        chunks = split_text_into_chunks(text, self.settings.chunk_size_chars)
        history = [{"role": "system", "content": self.content_prompt}]
        outputs = []
        for index, chunk in enumerate(chunks, 1):
            chunk_progress = ProgressInfo(progress.chapter, index, len(chunks)) if progress else None
            result = await self._translate_with_retries(chunk, history, chunk_progress)
            if result is None:
                self.logger.warning(
                    f"Chunk {index}/{len(chunks)} failed after {self.retry.max_attempts} attempts; "
                    "keeping the original text",
                    LogType.CHUNK_FAILED,
                    {"chunk": index, "error": str(self._last_error)},
                )
                self.event_bus.emit(EventType.CHUNK_FAILED, source="translator",
                                    chunk_index=index, total_chunks=len(chunks),
                                    error=str(self._last_error))
                result = f"{FAILED_CHUNK_MARKER}\n{chunk}"
            else:
                self.event_bus.emit(EventType.CHUNK_TRANSLATED, source="translator",
                                    chunk_index=index, total_chunks=len(chunks))
            outputs.append(result)

        return CHUNK_JOINER.join(outputs)

    async def _translate_with_retries(self, chunk: str, history: List[Message],
                                      progress: Optional[ProgressInfo]) -> Optional[str]:
        """Accepted translation of one chunk, or None when all attempts fail."""
        self._last_error = None
        attempts = self.retry.max_attempts

        for attempt in range(1, attempts + 1):
            try:
                translated = await self._translate_once(chunk, history, progress)
            except (LLMError, TranslationRefusedError) as e:
                self._last_error = e
                self.logger.debug(f"Attempt {attempt}/{attempts} failed: {e}")
                if attempt < attempts:
                    self.event_bus.emit(EventType.CHUNK_RETRY, source="translator",
                                        attempt=attempt, max_attempts=attempts, error=str(e))
                    await self.retry.wait(attempt)
                continue

            history.append({"role": "user", "content": chunk})
            history.append({"role": "assistant", "content": translated})
            trim_history(history, self.settings.history_length)
            return translated

        return None

    async def _translate_once(self, chunk: str, history: List[Message],
                              progress: Optional[ProgressInfo]) -> str:
        await pause(self.settings.delay_between_requests)
        messages = history + [{"role": "user", "content": chunk}]

        parts: List[str] = []
        char_count = 0
        last_emit = self.clock()
        chars_at_last_emit = 0

        async for fragment in self.provider.generate_streaming(messages):
            parts.append(fragment)
            char_count += len(fragment)

            now = self.clock()
            elapsed = now - last_emit
            if elapsed >= PROGRESS_INTERVAL:
                self._emit_progress(parts, char_count, (char_count - chars_at_last_emit) / elapsed, progress)
                last_emit = now
                chars_at_last_emit = char_count

        return self.validate_response("".join(parts))

    def _emit_progress(self, parts: List[str], char_count: int, rate: float,
                       progress: Optional[ProgressInfo]) -> None:
        text = "".join(parts)
        snapshot = StreamProgress(
            chars=char_count,
            chars_per_sec=rate,
            preview=text[-PREVIEW_LENGTH:].replace("\n", " "),
            chapter=progress.chapter if progress else None,
            chunk=progress.chunk if progress else 1,
            total_chunks=progress.total_chunks if progress else 1,
        )
        self.event_bus.emit(EventType.STREAM_PROGRESS, source="translator", progress=snapshot)

    @staticmethod
    def validate_response(response: str) -> str:
        """
        Trimmed response text.

        Raises:
            TranslationRefusedError: empty response or a refusal phrase prefix
        """
        trimmed = response.strip()
        if not trimmed:
            raise TranslationRefusedError("Empty response")
        if is_refusal(trimmed):
            raise TranslationRefusedError("Model refused to translate", trimmed)
        return trimmed
