"""
Pixiv novel scraper, using the site's ajax JSON API.

Many works need a logged-in session; export the browser cookies in Netscape
format to a file named like 'pixiv_cookies.txt' in the config directory.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from tsundoku.config import ScrapingSettings
from tsundoku.core.exceptions import InvalidUrlError, NotFoundError, ScraperParseError, UnsupportedUrlError
from tsundoku.scrapers.base import ChapterInfo, ChapterList, NovelInfo, Scraper, create_http_client
from tsundoku.scrapers.cookies import load_cookie_file
from tsundoku.utils.unified_logger import UnifiedLogger

API_ROOT = "https://www.pixiv.net/ajax"
INDIVIDUAL_PATTERN = re.compile(r"https?://www\.pixiv\.net/novel/show\.php\?id=(\d+)")
SERIES_PATTERN = re.compile(r"https?://www\.pixiv\.net/novel/series/(\d+)")
UNICODE_ESCAPE_REGEX = re.compile(r"\\u([0-9a-fA-F]{4})")
SERIES_PAGE_SIZE = 30

API_HEADERS = {
    "Accept": "application/json, text/javascript, */*; q=0.01",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://www.pixiv.net/",
    "Origin": "https://www.pixiv.net",
    "X-Requested-With": "XMLHttpRequest",
}


def unescape_unicode(text: str) -> str:
    """Decode literal \\uXXXX sequences left in API strings."""
    if "\\u" not in text:
        return text
    return UNICODE_ESCAPE_REGEX.sub(lambda m: chr(int(m.group(1), 16)), text)


def parse_pixiv_url(url: str):
    """('individual', novel_id), ('series', series_id) or None."""
    match = INDIVIDUAL_PATTERN.match(url)
    if match:
        return "individual", match.group(1)
    match = SERIES_PATTERN.match(url)
    if match:
        return "series", match.group(1)
    return None


class PixivScraper(Scraper):
    """Scraper for pixiv novels and novel series."""

    name = "Pixiv"
    module_id = "pixiv"

    def __init__(self, settings: Optional[ScrapingSettings] = None,
                 logger: Optional[UnifiedLogger] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None,
                 config_dir: Optional[Path] = None):
        super().__init__(settings, logger, transport)
        self.config_dir = config_dir

    def _create_client(self) -> httpx.AsyncClient:
        cookies = None
        if self.config_dir is not None:
            try:
                cookies, source = load_cookie_file(self.config_dir, ["pixiv"])
            except (OSError, ValueError) as e:
                self._debug(f"Failed to load cookies: {e}")
                cookies = None
            else:
                self._debug(f"Loaded cookie file: {source}" if source else "No cookie file found for pixiv")
        return create_http_client(headers=API_HEADERS, cookies=cookies, transport=self._transport)

    @classmethod
    def can_handle(cls, url: str) -> bool:
        return parse_pixiv_url(url) is not None

    async def api_request(self, url: str) -> Any:
        """Body of an ajax API response."""
        response = await self.fetch(url)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            self._debug(f"Unexpected content type {content_type!r}: {response.text[:512]}")
            raise ScraperParseError(f"Expected JSON but got: {content_type}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ScraperParseError(f"Failed to parse API response: {e}") from e

        if not isinstance(payload, dict):
            raise ScraperParseError("API response is not an object")
        if payload.get("error"):
            raise NotFoundError(f"API error: {payload.get('message', '')}")
        if payload.get("body") is None:
            raise ScraperParseError("API response missing body")
        return payload["body"]

    async def get_novel_info(self, url: str) -> NovelInfo:
        parsed = parse_pixiv_url(url)
        if parsed is None:
            raise UnsupportedUrlError(url)
        kind, novel_id = parsed

        if kind == "individual":
            body = await self.api_request(f"{API_ROOT}/novel/{novel_id}")
        else:
            body = await self.api_request(f"{API_ROOT}/novel/series/{novel_id}")

        try:
            title = body["title"]
        except (KeyError, TypeError) as e:
            raise ScraperParseError("API response has no title") from e
        return NovelInfo(title=unescape_unicode(title), base_url=url, novel_id=novel_id)

    async def _series_chapters(self, series_id: str) -> List[ChapterInfo]:
        chapters: List[ChapterInfo] = []
        last_order = 0

        while True:
            url = (f"{API_ROOT}/novel/series_content/{series_id}"
                   f"?limit={SERIES_PAGE_SIZE}&last_order={last_order}&order_by=asc")
            try:
                body = await self.api_request(url)
            except (NotFoundError, ScraperParseError):
                # Later pages sometimes fail; keep what was already listed
                if chapters:
                    break
                raise

            try:
                contents: List[Dict[str, Any]] = body["page"]["seriesContents"]
            except (KeyError, TypeError) as e:
                raise ScraperParseError("Series content response has no page.seriesContents") from e
            if not contents:
                break

            try:
                for content in contents:
                    order = int(content["series"]["contentOrder"])
                    title = (content.get("title") or "").strip()
                    chapters.append(ChapterInfo(
                        number=order,
                        title=unescape_unicode(title) if title else f"Chapter {order}",
                        url=str(content["id"]),
                    ))
            except (KeyError, TypeError, ValueError) as e:
                raise ScraperParseError(f"Malformed series entry: {e}") from e

            if len(contents) < SERIES_PAGE_SIZE:
                break
            last_order = chapters[-1].number

        chapters.sort(key=lambda chapter: chapter.number)
        for number, chapter in enumerate(chapters, 1):
            chapter.number = number
        return chapters

    async def get_chapter_list(self, base_url: str) -> ChapterList:
        parsed = parse_pixiv_url(base_url)
        if parsed is None:
            raise UnsupportedUrlError(base_url)
        kind, series_id = parsed
        if kind == "individual":
            return ChapterList.oneshot()
        return ChapterList(await self._series_chapters(series_id))

    async def download_chapter(self, chapter_url: str) -> str:
        """chapter_url is a novel id or a show.php URL."""
        if chapter_url.startswith("http"):
            match = INDIVIDUAL_PATTERN.match(chapter_url)
            if not match:
                raise InvalidUrlError(chapter_url)
            novel_id = match.group(1)
        else:
            novel_id = chapter_url

        body = await self.api_request(f"{API_ROOT}/novel/{novel_id}")
        content = body.get("content") if isinstance(body, dict) else None
        if content is None:
            raise NotFoundError("Novel content not found")
        return unescape_unicode(content)
