"""
Scraper interface and shared HTTP plumbing.

A scraper turns a novel URL into metadata, a chapter list and chapter text.
The workflow only talks to this interface; ScraperRegistry picks the
implementation from the URL.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx
import lxml.html
from lxml import etree

from tsundoku.config import ScrapingSettings
from tsundoku.core.exceptions import (
    NotFoundError,
    RateLimitedError,
    ScraperHttpError,
    ScraperParseError,
)
from tsundoku.core.retry import pause
from tsundoku.utils.unified_logger import UnifiedLogger

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
REQUEST_TIMEOUT = 30.0


@dataclass
class NovelInfo:
    """Metadata for a novel."""
    title: str
    base_url: str
    novel_id: str


@dataclass
class ChapterInfo:
    """One chapter; url is whatever download_chapter() expects."""
    number: int
    title: str
    url: str


@dataclass
class ChapterList:
    """Chapters of a serialized novel, or a single one-shot story."""
    chapters: List[ChapterInfo] = field(default_factory=list)
    one_shot: bool = False

    @classmethod
    def oneshot(cls) -> "ChapterList":
        return cls(one_shot=True)

    def __len__(self) -> int:
        return 1 if self.one_shot else len(self.chapters)


def has_class(name: str) -> str:
    """XPath predicate matching elements whose class list contains name."""
    return f"contains(concat(' ', normalize-space(@class), ' '), ' {name} ')"


def element_text(element) -> str:
    return element.text_content().strip()


def create_http_client(headers: Optional[Dict[str, str]] = None,
                       cookies: Optional[httpx.Cookies] = None,
                       transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Common HTTP client configuration for scrapers."""
    all_headers = {"User-Agent": USER_AGENT}
    all_headers.update(headers or {})
    return httpx.AsyncClient(
        headers=all_headers,
        cookies=cookies,
        timeout=httpx.Timeout(REQUEST_TIMEOUT),
        follow_redirects=True,
        transport=transport,
    )


class Scraper(ABC):
    """
    Base class for site scrapers.

    Args:
        settings: Delay between requests and debug flag
        logger: Console logger
        transport: Optional httpx transport (used by tests)
    """

    name = ""
    module_id = ""

    def __init__(self, settings: Optional[ScrapingSettings] = None,
                 logger: Optional[UnifiedLogger] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or ScrapingSettings()
        self.logger = logger or UnifiedLogger(console_output=False)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    @abstractmethod
    def can_handle(cls, url: str) -> bool:
        pass

    @abstractmethod
    async def get_novel_info(self, url: str) -> NovelInfo:
        pass

    @abstractmethod
    async def get_chapter_list(self, base_url: str) -> ChapterList:
        pass

    @abstractmethod
    async def download_chapter(self, chapter_url: str) -> str:
        pass

    def _create_client(self) -> httpx.AsyncClient:
        return create_http_client(transport=self._transport)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "Scraper":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _debug(self, message: str) -> None:
        if self.settings.debug:
            self.logger.info(f"[{self.name} Debug] {message}")

    async def fetch(self, url: str) -> httpx.Response:
        """GET url after the configured delay, mapping failures to scraper errors."""
        await pause(self.settings.delay_between_requests)
        client = await self._get_client()
        try:
            response = await client.get(url)
        except httpx.TimeoutException as e:
            raise ScraperHttpError(f"Request timed out: {e}", url) from e
        except httpx.RequestError as e:
            raise ScraperHttpError(f"Request failed: {e}", url) from e

        self._debug(f"GET {url} -> {response.status_code}")
        if response.status_code == 404:
            raise NotFoundError(f"Page not found: {url}")
        if response.status_code == 429:
            raise RateLimitedError()
        if response.is_error:
            raise ScraperHttpError(f"HTTP {response.status_code}", url, response.status_code)
        return response

    async def fetch_document(self, url: str):
        response = await self.fetch(url)
        return parse_html(response.text, url)


def parse_html(text: str, url: str = ""):
    try:
        return lxml.html.document_fromstring(text)
    except (etree.ParserError, ValueError) as e:
        raise ScraperParseError(f"Could not parse HTML from {url}: {e}") from e
