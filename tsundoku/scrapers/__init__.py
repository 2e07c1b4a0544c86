"""
Site scrapers and URL dispatch.
"""

from pathlib import Path
from typing import List, Optional, Type

from tsundoku.config import ScrapingSettings
from tsundoku.core.exceptions import UnsupportedUrlError
from tsundoku.scrapers.base import ChapterInfo, ChapterList, NovelInfo, Scraper
from tsundoku.scrapers.kakuyomu import KakuyomuScraper
from tsundoku.scrapers.pixiv import PixivScraper
from tsundoku.scrapers.syosetu import SyosetuScraper
from tsundoku.utils.unified_logger import UnifiedLogger

SCRAPER_CLASSES: List[Type[Scraper]] = [SyosetuScraper, KakuyomuScraper, PixivScraper]


class ScraperRegistry:
    """Chooses a scraper implementation by URL."""

    def __init__(self, settings: Optional[ScrapingSettings] = None,
                 config_dir: Optional[Path] = None,
                 logger: Optional[UnifiedLogger] = None):
        self.settings = settings or ScrapingSettings()
        self.config_dir = config_dir
        self.logger = logger

    def find_for_url(self, url: str) -> Scraper:
        """
        Raises:
            UnsupportedUrlError: no registered scraper handles url
        """
        for scraper_class in SCRAPER_CLASSES:
            if scraper_class.can_handle(url):
                if scraper_class is PixivScraper:
                    return PixivScraper(self.settings, self.logger, config_dir=self.config_dir)
                return scraper_class(self.settings, self.logger)
        raise UnsupportedUrlError(url)

    @staticmethod
    def supported_sites() -> List[str]:
        return [scraper_class.name for scraper_class in SCRAPER_CLASSES]


__all__ = [
    "ChapterInfo",
    "ChapterList",
    "NovelInfo",
    "Scraper",
    "ScraperRegistry",
    "SyosetuScraper",
    "KakuyomuScraper",
    "PixivScraper",
]
