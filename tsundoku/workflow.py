"""
End-to-end novel processing: download, name scouting, review, translation.

Output layout inside the output directory:

    [module: id] Translated Title/
        Original/
            01 - 原題.txt
        01 - Translated Chapter Title.txt
        oneshot.txt / original.txt      (one-shot stories)

Existing files are reused, so an interrupted run resumes where it stopped.
"""

import shlex
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from prompts.prompts import PromptSet, load_prompts
from tsundoku.config import AppConfig
from tsundoku.core.events import Event, EventBus, EventType
from tsundoku.core.exceptions import (
    ChapterRangeError,
    NameMappingError,
    ScraperError,
    TranslationFailedError,
)
from tsundoku.core.llm import create_llm_provider
from tsundoku.core.names import NameMappingStore, NameScout, build_chapter_payload
from tsundoku.core.translator import ProgressInfo, Translator
from tsundoku.scrapers import ScraperRegistry
from tsundoku.scrapers.base import ChapterInfo, ChapterList, NovelInfo, Scraper
from tsundoku.utils.file_utils import (
    read_text_async,
    sanitize_filename,
    write_text_atomic_async,
)
from tsundoku.utils.unified_logger import UnifiedLogger

TITLE_FAILED_SUFFIX = " [TRANSLATION_FAILED]"
ORIGINAL_DIR = "Original"
ONESHOT_ORIGINAL = "original.txt"
ONESHOT_TRANSLATED = "oneshot.txt"

EDITOR_CANDIDATES = {
    "win32": ["notepad", "code", "notepad++"],
    "darwin": ["open", "code", "vim", "nano"],
}
DEFAULT_EDITOR_CANDIDATES = ["kate", "gedit", "code", "vim", "nano", "emacs"]


@dataclass
class ChapterData:
    """A downloaded chapter."""
    number: int
    title: str
    content: str


def validate_chapter_range(chapter_list: ChapterList, start: Optional[int] = None,
                           end: Optional[int] = None) -> Tuple[int, int]:
    """
    Resolve --start/--end against the chapter list.

    Raises:
        ChapterRangeError: range used on a one-shot, start > end, or end past the last chapter
    """
    if chapter_list.one_shot:
        if start is not None or end is not None:
            raise ChapterRangeError("Cannot use --start or --end with one-shot stories")
        return 1, 1

    total = len(chapter_list)
    start_chapter = start if start is not None else 1
    end_chapter = end if end is not None else total

    if start_chapter > end_chapter:
        raise ChapterRangeError(
            f"Start chapter ({start_chapter}) cannot be greater than end chapter ({end_chapter})"
        )
    if end_chapter > total:
        raise ChapterRangeError(f"End chapter ({end_chapter}) exceeds total chapters ({total})")
    return start_chapter, end_chapter


def folder_prefix(module: str, novel_id: str) -> str:
    # ':' is not allowed in Windows paths
    separator = " -" if sys.platform == "win32" else ":"
    return f"[{module}{separator} {novel_id}]"


def find_existing_folder(output_dir: Path, module: str, novel_id: str) -> Optional[Path]:
    """Folder from an earlier run, in the current or the legacy '[id]' naming."""
    if not output_dir.is_dir():
        return None
    prefixes = (folder_prefix(module, novel_id), f"[{novel_id}]")
    for entry in sorted(output_dir.iterdir()):
        if entry.is_dir() and entry.name.startswith(prefixes):
            return entry
    return None


def chapter_file_prefix(number: int, width: int) -> str:
    return f"{number:0{width}d} - "


def translation_exists(story_dir: Path, prefix: str) -> bool:
    return any(entry.is_file() and entry.name.startswith(prefix) for entry in story_dir.iterdir())


def find_editor_command(configured: Optional[str] = None) -> Optional[List[str]]:
    """Command used to open the name mapping file, or None if nothing is available."""
    if configured:
        return shlex.split(configured)
    for candidate in EDITOR_CANDIDATES.get(sys.platform, DEFAULT_EDITOR_CANDIDATES):
        path = shutil.which(candidate)
        if path:
            return [path]
    return None


def attach_console_renderer(event_bus: EventBus, logger: UnifiedLogger) -> None:
    """Render translator and scout events on the console."""

    def on_stream_progress(event: Event):
        logger.progress(event.data["progress"].describe())

    def on_chunk_done(event: Event):
        logger.clear_progress()

    def on_retry(event: Event):
        logger.clear_progress()
        logger.warning(
            f"Attempt {event.data['attempt']}/{event.data['max_attempts']} failed, retrying: "
            f"{event.data['error']}"
        )

    event_bus.subscribe(EventType.STREAM_PROGRESS, on_stream_progress)
    event_bus.subscribe_multiple([EventType.CHUNK_TRANSLATED, EventType.CHUNK_FAILED], on_chunk_done)
    event_bus.subscribe(EventType.CHUNK_RETRY, on_retry)


class NovelWorkflow:
    """
    Runs one novel through download, name scouting, review and translation.

    Args:
        scraper: Site scraper for the novel
        translator: Title and content translator
        name_scout: Name candidate extractor
        name_mapping: Glossary for this novel
        output_dir: Parent directory of the story folder
        logger: Console logger
        editor_command: Editor for the review step, auto-detected if None
        name_pause: Stop for manual review after scouting
        input_func: Blocks until the user confirms the review
    """

    def __init__(self, scraper: Scraper, translator: Translator, name_scout: NameScout,
                 name_mapping: NameMappingStore, output_dir: Path, logger: UnifiedLogger,
                 editor_command: Optional[str] = None, name_pause: bool = True,
                 input_func: Callable[[str], str] = input):
        self.scraper = scraper
        self.translator = translator
        self.name_scout = name_scout
        self.name_mapping = name_mapping
        self.output_dir = Path(output_dir)
        self.logger = logger
        self.editor_command = editor_command
        self.name_pause = name_pause
        self.input_func = input_func

    async def run(self, novel_info: NovelInfo, chapter_list: ChapterList,
                  start: Optional[int] = None, end: Optional[int] = None) -> None:
        start_chapter, end_chapter = validate_chapter_range(chapter_list, start, end)
        if chapter_list.one_shot:
            await self.process_oneshot(novel_info)
        else:
            self.logger.info(f"Processing chapters {start_chapter} to {end_chapter} of {len(chapter_list)}")
            await self.process_chapters(novel_info, chapter_list.chapters, start_chapter, end_chapter)

    async def find_or_create_folder(self, novel_info: NovelInfo) -> Path:
        module = self.scraper.module_id
        existing = find_existing_folder(self.output_dir, module, novel_info.novel_id)
        if existing is not None:
            self.logger.info(f"Using existing folder: {existing.name}")
            return existing

        self.logger.step("Translating title for folder name...")
        try:
            translated_title = await self.translator.translate(novel_info.title, is_title=True)
        except TranslationFailedError as e:
            self.logger.warning(f"Title translation failed, using the original title: {e}")
            translated_title = novel_info.title

        folder = self.output_dir / f"{folder_prefix(module, novel_info.novel_id)} {sanitize_filename(translated_title)}"
        folder.mkdir(parents=True, exist_ok=True)
        self.logger.success(f"Created folder: {folder.name}")
        return folder

    async def process_oneshot(self, novel_info: NovelInfo) -> None:
        self.logger.section("Processing One-Shot Story")
        story_dir = await self.find_or_create_folder(novel_info)

        original_path = story_dir / ONESHOT_ORIGINAL
        if original_path.exists():
            self.logger.info("Original content already exists, loading...")
            content = await read_text_async(original_path)
        else:
            self.logger.step("Downloading original content...")
            content = await self.scraper.download_chapter(novel_info.base_url)
            await write_text_atomic_async(original_path, content)
            self.logger.success(f"Saved original ({len(content)} chars)")

        scouted = await self.run_name_scout([ChapterData(1, novel_info.title, content)])
        if scouted and self.name_pause:
            self.manual_name_review()

        translated_path = story_dir / ONESHOT_TRANSLATED
        if translated_path.exists():
            self.logger.info("Translation already exists, skipping...")
            return

        self.logger.step("Translating content...")
        mapped = self.name_mapping.apply_to_text(content)
        translated = await self.translator.translate(mapped, progress=ProgressInfo(chapter=1))
        await write_text_atomic_async(translated_path, translated)
        self.logger.success("Translation saved")

    async def download_chapters(self, chapters: Sequence[ChapterInfo], original_dir: Path,
                                width: int) -> List[ChapterData]:
        self.logger.section("Download Phase")
        downloaded = []

        with self.logger.progress_bar(total=len(chapters), desc="Downloading") as bar:
            for chapter in chapters:
                filename = f"{chapter_file_prefix(chapter.number, width)}{sanitize_filename(chapter.title)}.txt"
                original_path = original_dir / filename

                if original_path.exists():
                    self.logger.info(f"Chapter {chapter.number} already downloaded")
                    content = await read_text_async(original_path)
                else:
                    self.logger.step(f"Downloading chapter {chapter.number}: {chapter.title}")
                    try:
                        content = await self.scraper.download_chapter(chapter.url)
                    except ScraperError as e:
                        self.logger.error(f"Failed to download chapter {chapter.number}: {e}")
                        bar.update(1)
                        continue
                    await write_text_atomic_async(original_path, content)
                    self.logger.success(f"Saved ({len(content)} chars)")

                downloaded.append(ChapterData(chapter.number, chapter.title, content))
                bar.update(1)

        return downloaded

    async def process_chapters(self, novel_info: NovelInfo, chapters: Sequence[ChapterInfo],
                               start: int, end: int) -> None:
        self.logger.section("Processing Multi-Chapter Story")
        story_dir = await self.find_or_create_folder(novel_info)
        original_dir = story_dir / ORIGINAL_DIR
        original_dir.mkdir(parents=True, exist_ok=True)

        width = len(str(len(chapters)))
        selected = [chapter for chapter in chapters if start <= chapter.number <= end]
        downloaded = await self.download_chapters(selected, original_dir, width)
        if not downloaded:
            self.logger.warning("No chapters downloaded")
            return

        scouted = await self.run_name_scout(downloaded)
        if scouted and self.name_pause:
            self.manual_name_review()

        self.logger.section("Translation Phase")
        for chapter in downloaded:
            prefix = chapter_file_prefix(chapter.number, width)
            if translation_exists(story_dir, prefix):
                self.logger.info(f"Chapter {chapter.number} already translated, skipping")
                continue
            await self.translate_chapter(chapter, story_dir, prefix)

    async def translate_chapter(self, chapter: ChapterData, story_dir: Path, prefix: str) -> Path:
        self.logger.step(f"Translating chapter {chapter.number}: {chapter.title}")

        mapped_title = self.name_mapping.apply_to_text(chapter.title)
        try:
            translated_title = await self.translator.translate(mapped_title, is_title=True)
        except TranslationFailedError as e:
            self.logger.warning(f"Chapter {chapter.number} title translation failed: {e}")
            translated_title = f"{chapter.title}{TITLE_FAILED_SUFFIX}"

        mapped_content = self.name_mapping.apply_to_text(chapter.content)
        translated_content = await self.translator.translate(
            mapped_content, progress=ProgressInfo(chapter=chapter.number)
        )

        path = story_dir / f"{prefix}{sanitize_filename(translated_title)}.txt"
        await write_text_atomic_async(path, translated_content)
        self.logger.success(f"Saved: {path.name}")
        return path

    async def run_name_scout(self, chapters: Sequence[ChapterData]) -> bool:
        """
        Scout chapters that are not covered yet.

        Returns:
            True if any chapter was scouted
        """
        self.logger.section("Name Scout Phase")
        uncovered = [c for c in chapters if not self.name_mapping.is_chapter_covered(c.number)]
        if not uncovered:
            self.logger.info("All chapters already scouted for names")
            return False

        self.logger.info(f"Scouting {len(uncovered)} chapters for character names")
        for chapter in uncovered:
            self.logger.step(f"Scouting chapter {chapter.number}: {chapter.title}")
            payload = build_chapter_payload(chapter.number, chapter.title, chapter.content)

            found = 0
            async for batch in self.name_scout.collect_names(payload):
                found += len(batch)
                if self.name_mapping.record_votes(batch):
                    self.name_mapping.save()
            self.logger.info(f"Found {found} names in chapter {chapter.number}")

            self.name_mapping.add_coverage([chapter.number])
            self.name_mapping.save()

        self.logger.success(f"Name mapping now has {len(self.name_mapping)} names")
        return True

    def open_editor(self, path: Path) -> bool:
        command = find_editor_command(self.editor_command)
        if command is None:
            return False
        try:
            subprocess.Popen(command + [str(path)])
        except OSError as e:
            self.logger.warning(f"Failed to launch {command[0]}: {e}")
            return False
        self.logger.info(f"Opening in {Path(command[0]).name}...")
        return True

    def manual_name_review(self) -> None:
        """
        Let the user edit the mapping file, then reload it until it is valid.

        Raises:
            NameMappingError: the file is still invalid when input is closed
        """
        self.logger.section("Name Mapping Review")
        path = self.name_mapping.path
        self.logger.info(f"Name mapping file: {path}")

        if not self.open_editor(path):
            self.logger.info(f"Could not auto-detect editor. Please open the file manually: {path}")

        while True:
            self.logger.info("Review the name mappings and press Enter when done.")
            try:
                self.input_func("> ")
                input_closed = False
            except EOFError:
                input_closed = True

            try:
                self.name_mapping.reload_from_disk()
            except NameMappingError as e:
                if input_closed:
                    raise
                self.logger.error(f"Failed to reload name mapping: {e}")
                self.logger.info("Please fix the JSON and try again.")
                continue

            self.logger.success("Name mapping reloaded successfully")
            return


async def translate_novel(config: AppConfig, novel_url: str, logger: UnifiedLogger,
                          start: Optional[int] = None, end: Optional[int] = None,
                          name_pause: bool = True, prompts: Optional[PromptSet] = None) -> None:
    """
    Full run for one novel URL.

    Raises:
        UnsupportedUrlError: no scraper handles the URL
        ChapterRangeError: invalid --start/--end
        ScraperError: novel metadata or chapter list could not be fetched
        NameMappingError: the glossary file is unusable
    """
    prompts = prompts or load_prompts(config.config_dir)
    registry = ScraperRegistry(config.scraping, config.config_dir, logger)

    logger.step("Finding scraper for URL...")
    scraper = registry.find_for_url(novel_url)
    logger.success(f"Using {scraper.name} scraper")

    event_bus = EventBus()
    attach_console_renderer(event_bus, logger)

    translation_provider = create_llm_provider(config.api)
    scout_provider = create_llm_provider(config.scout_api_config)

    async with scraper, translation_provider, scout_provider:
        logger.step("Fetching novel information...")
        novel_info = await scraper.get_novel_info(novel_url)
        logger.success(f"Found: {novel_info.title}")
        logger.info(f"Novel ID: {novel_info.novel_id}")

        logger.step("Fetching chapter list...")
        chapter_list = await scraper.get_chapter_list(novel_info.base_url)
        if chapter_list.one_shot:
            logger.success("This is a one-shot story")
        else:
            logger.success(f"Found {len(chapter_list)} chapters")

        validate_chapter_range(chapter_list, start, end)

        name_mapping = NameMappingStore(config.names_dir, scraper.module_id, novel_info.novel_id, logger)
        logger.info(
            f"Name mapping: {len(name_mapping)} names loaded, "
            f"{len(name_mapping.data.coverage)} chapters covered"
        )

        workflow = NovelWorkflow(
            scraper=scraper,
            translator=Translator(translation_provider, config.translation, prompts.title,
                                  prompts.content, logger, event_bus),
            name_scout=NameScout(scout_provider, config.name_scout, prompts.name_scout, logger, event_bus),
            name_mapping=name_mapping,
            output_dir=config.paths.output_directory,
            logger=logger,
            editor_command=config.paths.editor_command,
            name_pause=name_pause,
        )
        await workflow.run(novel_info, chapter_list, start, end)
