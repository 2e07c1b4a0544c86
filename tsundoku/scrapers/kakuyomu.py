"""
Kakuyomu (kakuyomu.jp) scraper.
"""

import re
from urllib.parse import urljoin

from tsundoku.core.exceptions import ElementNotFoundError, InvalidUrlError, UnsupportedUrlError
from tsundoku.scrapers.base import ChapterInfo, ChapterList, NovelInfo, Scraper, element_text, has_class

SITE_ROOT = "https://kakuyomu.jp"
URL_PATTERN = re.compile(r"https?://kakuyomu\.jp/works/(\d+)(?:/episodes/\d+)?/?")
WORK_ID_REGEX = re.compile(r"/works/(\d+)")
EPISODE_SUFFIX_REGEX = re.compile(r"/episodes/\d+/?$")

# Class names carry a build hash suffix, so match on the prefix
TITLE_XPATH = "//h1[starts-with(@class, 'Heading_heading')]//a"
CHAPTER_XPATH = "//a[starts-with(@class, 'WorkTocSection_link')]"
CONTENT_XPATH = f"//div[{has_class('widget-episodeBody')}]"


class KakuyomuScraper(Scraper):
    """Scraper for kakuyomu.jp works."""

    name = "Kakuyomu"
    module_id = "kakuyomu"

    @classmethod
    def can_handle(cls, url: str) -> bool:
        return URL_PATTERN.match(url) is not None

    @staticmethod
    def extract_work_id(url: str) -> str:
        match = WORK_ID_REGEX.search(url)
        if not match:
            raise InvalidUrlError(url)
        return match.group(1)

    @staticmethod
    def get_base_url(url: str) -> str:
        return EPISODE_SUFFIX_REGEX.sub("", url).rstrip("/")

    def extract_title(self, doc) -> str:
        links = doc.xpath(TITLE_XPATH)
        if links:
            title = (links[0].get("title") or "").strip() or element_text(links[0])
            if title:
                return title
        raise ElementNotFoundError("novel title")

    def extract_chapters(self, doc) -> ChapterList:
        chapters = []
        for link in doc.xpath(CHAPTER_XPATH):
            href = link.get("href")
            if not href:
                continue
            chapters.append(ChapterInfo(
                number=len(chapters) + 1,
                title=element_text(link),
                url=urljoin(SITE_ROOT, href).rstrip("/"),
            ))
        return ChapterList(chapters)

    def extract_content(self, doc) -> str:
        bodies = doc.xpath(CONTENT_XPATH)
        if not bodies:
            raise ElementNotFoundError("chapter content")

        paragraphs = [element_text(p) for p in bodies[0].xpath(".//p")]
        paragraphs = [p for p in paragraphs if p]
        if not paragraphs:
            return element_text(bodies[0])
        return "\n".join(paragraphs)

    async def get_novel_info(self, url: str) -> NovelInfo:
        if not self.can_handle(url):
            raise UnsupportedUrlError(url)
        base_url = self.get_base_url(url)
        doc = await self.fetch_document(base_url)
        return NovelInfo(
            title=self.extract_title(doc),
            base_url=base_url,
            novel_id=self.extract_work_id(url),
        )

    async def get_chapter_list(self, base_url: str) -> ChapterList:
        doc = await self.fetch_document(base_url)
        return self.extract_chapters(doc)

    async def download_chapter(self, chapter_url: str) -> str:
        doc = await self.fetch_document(chapter_url)
        return self.extract_content(doc)
