"""
Exception hierarchy for the translation pipeline.

Every error raised by tsundoku derives from TsundokuError so callers can
contain failures at the level they care about (chunk, chapter or run).
"""

from typing import Optional, Dict, Any


class TsundokuError(Exception):
    """Base exception for all tsundoku errors.

    Attributes:
        message: Human-readable error message
        context: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        base = f"{self.__class__.__name__}: {self.message}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base += f" (context: {context_str})"
        return base


# ============================================================================
# Generation errors
# ============================================================================

class LLMError(TsundokuError):
    """Generation failed: transport, HTTP status or malformed body."""
    pass


class LLMConnectionError(LLMError):
    """Raised on connection failures and timeouts."""
    pass


class LLMAuthenticationError(LLMError):
    """Raised when the API rejects the key (401/403)."""
    pass


class LLMRateLimitError(LLMError):
    """Raised when the API answers 429."""
    pass


class LLMResponseError(LLMError):
    """Raised on a non-2xx status or a body that cannot be decoded."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        ctx = dict(context or {})
        if status_code is not None:
            ctx["status_code"] = status_code
        super().__init__(message, ctx)
        self.status_code = status_code


# ============================================================================
# Translation errors
# ============================================================================

class TranslationRefusedError(TsundokuError):
    """The model returned an empty answer or a refusal."""

    def __init__(self, message: str, response: str = ""):
        super().__init__(message, {"response": response[:80]} if response else None)
        self.response = response


class TranslationFailedError(TsundokuError):
    """All attempts for a unit of work were used up."""

    def __init__(self, message: str, attempts: int, last_error: Optional[Exception] = None):
        context: Dict[str, Any] = {"attempts": attempts}
        if last_error is not None:
            context["last_error"] = last_error
        super().__init__(message, context)
        self.attempts = attempts
        self.last_error = last_error


class NameExtractionParseError(TsundokuError):
    """The name scout response could not be parsed into candidates."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


# ============================================================================
# Name mapping file errors
# ============================================================================

class NameMappingError(TsundokuError):
    """Base exception for name mapping file errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, {"path": path} if path else None)
        self.path = path


class NameMappingReadError(NameMappingError):
    """The mapping file could not be read."""
    pass


class NameMappingParseError(NameMappingError):
    """The mapping file is not valid JSON."""
    pass


class NameMappingStructureError(NameMappingError):
    """The mapping file is JSON but does not have the expected shape."""
    pass


class NameMappingWriteError(NameMappingError):
    """The mapping file could not be written."""
    pass


# ============================================================================
# Configuration errors
# ============================================================================

class ConfigurationError(TsundokuError):
    """Raised when a configuration value is missing or invalid."""

    def __init__(self, key: str, message: str):
        super().__init__(f"Invalid value for {key}: {message}", {"key": key})
        self.key = key


# ============================================================================
# Scraper errors
# ============================================================================

class ScraperError(TsundokuError):
    """Base exception for scraping failures."""
    pass


class ScraperHttpError(ScraperError):
    """Transport failure or unexpected HTTP status while scraping."""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        context: Dict[str, Any] = {}
        if url:
            context["url"] = url
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code


class ScraperParseError(ScraperError):
    """The page or API payload could not be interpreted."""
    pass


class ElementNotFoundError(ScraperError):
    """An expected element is missing from the page."""

    def __init__(self, selector: str, url: Optional[str] = None):
        super().__init__(f"Element not found: {selector}", {"url": url} if url else None)
        self.selector = selector


class InvalidUrlError(ScraperError):
    """The URL does not have the shape the scraper expects."""

    def __init__(self, url: str):
        super().__init__(f"Invalid URL: {url}")
        self.url = url


class NotFoundError(ScraperError):
    """The novel or chapter does not exist."""
    pass


class RateLimitedError(ScraperError):
    """The site is throttling requests."""

    def __init__(self, message: str = "Rate limited by the site"):
        super().__init__(message)


class UnsupportedUrlError(ScraperError):
    """No scraper handles the URL."""

    def __init__(self, url: str):
        super().__init__(f"No scraper supports this URL: {url}")
        self.url = url


# ============================================================================
# Workflow errors
# ============================================================================

class ChapterRangeError(TsundokuError):
    """--start/--end do not fit the chapter list."""
    pass
