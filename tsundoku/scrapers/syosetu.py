"""
Syosetu (ncode.syosetu.com / novel18.syosetu.com) scraper.
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import urljoin

import httpx

from tsundoku.core.exceptions import ElementNotFoundError, InvalidUrlError, UnsupportedUrlError
from tsundoku.scrapers.base import (
    ChapterInfo,
    ChapterList,
    NovelInfo,
    Scraper,
    create_http_client,
    element_text,
    has_class,
)

URL_PATTERNS = [
    re.compile(r"https?://ncode\.syosetu\.com/n\w+/?(\d+/?)?"),
    re.compile(r"https?://novel18\.syosetu\.com/n\w+/?(\d+/?)?"),
]
NOVEL_ID_REGEX = re.compile(r"\.com/(n[a-z0-9]+)")
BASE_URL_REGEX = re.compile(r"(https?://[\w.]+/n\w+)/?")

MAX_PAGES = 100

TITLE_XPATHS = [
    f"//*[{has_class('p-novel__title')}]",
    f"//p[{has_class('novel_title')}]",
]
CHAPTER_XPATHS = [
    f"//*[{has_class('p-eplist__sublist')}]/a",
    f"//*[{has_class('novel_sublist2')}]/dd/a",
]
NEXT_PAGE_XPATH = f"//*[{has_class('c-pager__item--next')}]"
CONTENT_XPATHS = [
    f"//*[{has_class('p-novel__text')} and {has_class('js-novel-text')}"
    f" and not({has_class('p-novel__text--preface')})"
    f" and not({has_class('p-novel__text--afterword')})]",
    "//*[@id='novel_honbun']",
]


def text_without_ruby(element) -> str:
    """Element text with ruby readings (<rt>) left out."""
    parts = [element.text or ""]
    for child in element:
        # Comments and processing instructions have a non-string tag
        if isinstance(child.tag, str) and child.tag != "rt":
            parts.append(text_without_ruby(child))
        parts.append(child.tail or "")
    return "".join(parts)


def _first(doc, xpaths: List[str]):
    for xpath in xpaths:
        found = doc.xpath(xpath)
        if found:
            return found[0]
    return None


class SyosetuScraper(Scraper):
    """Scraper for ncode.syosetu.com and novel18.syosetu.com."""

    name = "Syosetu"
    module_id = "syosetu"

    def _create_client(self) -> httpx.AsyncClient:
        # Adult content is behind an age gate cookie
        return create_http_client(cookies=httpx.Cookies({"over18": "yes"}), transport=self._transport)

    @classmethod
    def can_handle(cls, url: str) -> bool:
        return any(pattern.match(url) for pattern in URL_PATTERNS)

    @staticmethod
    def extract_novel_id(url: str) -> str:
        match = NOVEL_ID_REGEX.search(url)
        if not match:
            raise InvalidUrlError(url)
        return match.group(1)

    @staticmethod
    def extract_base_url(url: str) -> str:
        match = BASE_URL_REGEX.search(url)
        if not match:
            raise InvalidUrlError(url)
        return match.group(1).rstrip("/") + "/"

    def extract_title(self, doc) -> str:
        for xpath in TITLE_XPATHS:
            for element in doc.xpath(xpath):
                title = element_text(element)
                if title:
                    return title
        raise ElementNotFoundError("novel title")

    def extract_chapter_links(self, doc, base_url: str) -> List[Tuple[str, str]]:
        for xpath in CHAPTER_XPATHS:
            links = [
                (element_text(a), urljoin(base_url, a.get("href")))
                for a in doc.xpath(xpath)
                if a.get("href")
            ]
            if links:
                return links
        return []

    def find_next_page(self, doc) -> Optional[str]:
        for element in doc.xpath(NEXT_PAGE_XPATH):
            if element.get("href"):
                return element.get("href")
        for link in doc.xpath("//a[@href]"):
            text = link.text_content()
            if "次へ" in text or "次ページ" in text:
                return link.get("href")
        return None

    def is_oneshot(self, doc) -> bool:
        return _first(doc, CONTENT_XPATHS) is not None

    def extract_content(self, doc) -> str:
        container = _first(doc, CONTENT_XPATHS)
        if container is None:
            raise ElementNotFoundError("chapter content")

        paragraphs = container.xpath(".//p")
        if paragraphs:
            text = "\n".join(text_without_ruby(p) for p in paragraphs)
        else:
            text = text_without_ruby(container)
        return text.strip()

    async def get_novel_info(self, url: str) -> NovelInfo:
        if not self.can_handle(url):
            raise UnsupportedUrlError(url)
        # Chapter pages do not carry the novel title
        base_url = self.extract_base_url(url)
        doc = await self.fetch_document(base_url)
        return NovelInfo(
            title=self.extract_title(doc),
            base_url=base_url,
            novel_id=self.extract_novel_id(url),
        )

    async def get_chapter_list(self, base_url: str) -> ChapterList:
        links: List[Tuple[str, str]] = []
        current_url = base_url

        for page in range(1, MAX_PAGES + 1):
            doc = await self.fetch_document(current_url)
            page_links = self.extract_chapter_links(doc, base_url)

            if not page_links and page == 1:
                return ChapterList.oneshot() if self.is_oneshot(doc) else ChapterList()

            links.extend(page_links)
            next_url = self.find_next_page(doc)
            if not next_url:
                break
            current_url = urljoin(base_url, next_url)

        return ChapterList([
            ChapterInfo(number=number, title=title, url=url)
            for number, (title, url) in enumerate(links, 1)
        ])

    async def download_chapter(self, chapter_url: str) -> str:
        doc = await self.fetch_document(chapter_url)
        return self.extract_content(doc)
