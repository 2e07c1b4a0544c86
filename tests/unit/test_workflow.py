"""
Unit tests for the novel workflow, with a fake scraper and scripted providers.
"""

import json

import pytest

from tests.fakes import EchoProvider, ScriptedProvider
from tsundoku.core.exceptions import ChapterRangeError, NameMappingParseError, NotFoundError
from tsundoku.core.names import NameMappingStore, NameScout
from tsundoku.core.translator import Translator
from tsundoku.scrapers.base import ChapterInfo, ChapterList, NovelInfo, Scraper
from tsundoku.utils.unified_logger import UnifiedLogger
from tsundoku.workflow import (
    NovelWorkflow,
    find_existing_folder,
    folder_prefix,
    validate_chapter_range,
)

NOVEL = NovelInfo(title="物語", base_url="https://ncode.syosetu.com/n1/", novel_id="n1")
TARO = '{"names": [{"original": "太郎", "english": "Taro", "part": "given"}]}'
NO_NAMES = '{"names": []}'
MISSING_EDITOR = "tsundoku-test-editor-that-does-not-exist"


class FakeScraper(Scraper):
    """Serves chapter text from a dict; missing keys raise NotFoundError."""

    name = "Fake"
    module_id = "syosetu"

    def __init__(self, pages):
        super().__init__()
        self.pages = pages
        self.downloads = []

    @classmethod
    def can_handle(cls, url):
        return True

    async def get_novel_info(self, url):
        return NOVEL

    async def get_chapter_list(self, base_url):
        return ChapterList()

    async def download_chapter(self, chapter_url):
        self.downloads.append(chapter_url)
        if chapter_url not in self.pages:
            raise NotFoundError(f"Page not found: {chapter_url}")
        return self.pages[chapter_url]


def chapters(*titles):
    return ChapterList([ChapterInfo(i, title, f"c{i}") for i, title in enumerate(titles, 1)])


@pytest.fixture
def logger():
    return UnifiedLogger(console_output=False)


@pytest.fixture
def make_workflow(tmp_path, names_dir, logger, translation_settings, scout_settings):
    def factory(pages, scout_replies, name_pause=False, input_func=input):
        scraper = FakeScraper(pages)
        scout_provider = ScriptedProvider(scout_replies)
        workflow = NovelWorkflow(
            scraper=scraper,
            translator=Translator(EchoProvider(), translation_settings),
            name_scout=NameScout(scout_provider, scout_settings),
            name_mapping=NameMappingStore(names_dir, "syosetu", "n1"),
            output_dir=tmp_path / "out",
            logger=logger,
            editor_command=MISSING_EDITOR,
            name_pause=name_pause,
            input_func=input_func,
        )
        return workflow, scraper, scout_provider
    return factory


class TestChapterRange:
    """--start/--end validation."""

    def test_defaults_cover_everything(self):
        """Should default to the full list."""
        assert validate_chapter_range(chapters("a", "b", "c")) == (1, 3)

    def test_explicit_range(self):
        """Should accept a range inside the list."""
        assert validate_chapter_range(chapters("a", "b", "c"), 2, 3) == (2, 3)

    @pytest.mark.parametrize("start, end", [(3, 2), (1, 4), (None, 9)])
    def test_invalid_range(self, start, end):
        """Should reject reversed ranges and ends past the last chapter."""
        with pytest.raises(ChapterRangeError):
            validate_chapter_range(chapters("a", "b", "c"), start, end)

    def test_range_on_oneshot(self):
        """Should reject --start and --end for one-shots."""
        with pytest.raises(ChapterRangeError):
            validate_chapter_range(ChapterList.oneshot(), start=1)
        assert validate_chapter_range(ChapterList.oneshot()) == (1, 1)


class TestFolders:
    """Story folder lookup."""

    def test_finds_current_and_legacy_names(self, tmp_path):
        """Should match both '[module: id]' and '[id]' folders."""
        legacy = tmp_path / "[n1] Old Title"
        legacy.mkdir()
        assert find_existing_folder(tmp_path, "syosetu", "n1") == legacy

        current = tmp_path / f"{folder_prefix('syosetu', 'n2')} New Title"
        current.mkdir()
        assert find_existing_folder(tmp_path, "syosetu", "n2") == current

    def test_missing_output_dir(self, tmp_path):
        """Should return None when nothing exists yet."""
        assert find_existing_folder(tmp_path / "nope", "syosetu", "n1") is None


class TestMultiChapterRun:
    """Download, scout, and translate phases."""

    @pytest.mark.asyncio
    async def test_full_run_writes_originals_and_translations(self, make_workflow, tmp_path):
        """Should save originals, apply the glossary and write translations."""
        workflow, _, _ = make_workflow({"c1": "太郎は走った。", "c2": "雨が降った。"}, [TARO, NO_NAMES])

        await workflow.run(NOVEL, chapters("第一話", "第二話"))

        story_dir = tmp_path / "out" / f"{folder_prefix('syosetu', 'n1')} EN:物語"
        assert (story_dir / "Original" / "1 - 第一話.txt").read_text(encoding="utf-8") == "太郎は走った。"
        assert (story_dir / "1 - EN:第一話.txt").read_text(encoding="utf-8") == "EN:Taroは走った。"
        assert (story_dir / "2 - EN:第二話.txt").read_text(encoding="utf-8") == "EN:雨が降った。"

        mapping = json.loads(workflow.name_mapping.path.read_text(encoding="utf-8"))
        assert mapping["coverage"] == [1, 2]
        assert mapping["names"]["太郎"]["english"] == "Taro"

    @pytest.mark.asyncio
    async def test_second_run_reuses_everything(self, make_workflow, names_dir):
        """Should skip download, scouting and translation already done."""
        workflow, _, _ = make_workflow({"c1": "本文"}, [NO_NAMES])
        await workflow.run(NOVEL, chapters("第一話"))

        rerun, scraper, scout_provider = make_workflow({}, [])
        await rerun.run(NOVEL, chapters("第一話"))

        assert scraper.downloads == []
        assert scout_provider.requests == []

    @pytest.mark.asyncio
    async def test_range_limits_chapters(self, make_workflow):
        """Should only process chapters inside --start/--end."""
        workflow, scraper, _ = make_workflow({"c2": "二", "c3": "三"}, [NO_NAMES, NO_NAMES])

        await workflow.run(NOVEL, chapters("一", "二", "三"), start=2, end=3)

        assert scraper.downloads == ["c2", "c3"]

    @pytest.mark.asyncio
    async def test_failed_download_is_skipped(self, make_workflow, tmp_path):
        """Should carry on with the chapters that did download."""
        workflow, _, scout_provider = make_workflow({"c1": "一"}, [NO_NAMES])

        await workflow.run(NOVEL, chapters("一", "二"))

        story_dir = next((tmp_path / "out").iterdir())
        assert sorted(p.name for p in story_dir.iterdir() if p.is_file()) == ["1 - EN:一.txt"]
        assert len(scout_provider.requests) == 1


class TestOneShotRun:
    """Single-page stories."""

    @pytest.mark.asyncio
    async def test_oneshot_files(self, make_workflow, tmp_path):
        """Should write original.txt and oneshot.txt."""
        workflow, scraper, _ = make_workflow({NOVEL.base_url: "花子の話。"}, [NO_NAMES])

        await workflow.run(NOVEL, ChapterList.oneshot())

        story_dir = next((tmp_path / "out").iterdir())
        assert (story_dir / "original.txt").read_text(encoding="utf-8") == "花子の話。"
        assert (story_dir / "oneshot.txt").read_text(encoding="utf-8") == "EN:花子の話。"
        assert scraper.downloads == [NOVEL.base_url]


class TestManualReview:
    """Pausing for glossary edits."""

    @pytest.mark.asyncio
    async def test_review_reloads_edits(self, make_workflow):
        """Should pick up a correction made while paused."""
        workflow = None

        def edit_then_continue(prompt):
            path = workflow.name_mapping.path
            document = json.loads(path.read_text(encoding="utf-8"))
            document["names"]["太郎"]["votes"] = {"Tarou": 9}
            path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
            return ""

        workflow, _, _ = make_workflow({"c1": "太郎"}, [TARO], name_pause=True, input_func=edit_then_continue)

        await workflow.run(NOVEL, chapters("一"))

        assert workflow.name_mapping.data.names["太郎"].english == "Tarou"
        story_dir = next(p for p in workflow.output_dir.iterdir())
        assert (story_dir / "1 - EN:一.txt").read_text(encoding="utf-8") == "EN:Tarou"

    def test_invalid_file_retried_until_fixed(self, make_workflow):
        """Should keep asking while the file does not parse."""
        calls = []
        workflow = None

        def fix_on_second_prompt(prompt):
            calls.append(prompt)
            if len(calls) == 2:
                workflow.name_mapping.path.write_text('{"names": {}, "coverage": []}', encoding="utf-8")
            return ""

        workflow, _, _ = make_workflow({}, [], input_func=fix_on_second_prompt)
        workflow.name_mapping.save()
        workflow.name_mapping.path.write_text("{ broken", encoding="utf-8")

        workflow.manual_name_review()

        assert len(calls) == 2

    def test_closed_input_with_invalid_file_raises(self, make_workflow):
        """Should give up when input is closed and the file is still broken."""
        def closed(prompt):
            raise EOFError

        workflow, _, _ = make_workflow({}, [], input_func=closed)
        workflow.name_mapping.save()
        workflow.name_mapping.path.write_text("{ broken", encoding="utf-8")

        with pytest.raises(NameMappingParseError):
            workflow.manual_name_review()
