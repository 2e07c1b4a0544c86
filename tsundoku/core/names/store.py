"""
Persistent name glossary for one (module, novel) pair.

The JSON file on disk is the source of truth. Every successful mutation is
followed by save() from the caller, and reload_from_disk() replaces the
in-memory copy entirely. Only one process is expected to use a given file.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from tsundoku.core.exceptions import (
    NameMappingParseError,
    NameMappingReadError,
    NameMappingStructureError,
    NameMappingWriteError,
)
from tsundoku.core.names.filters import is_english_admissible, is_original_admissible
from tsundoku.core.names.models import NameEntry, NameInfo, NameMappingData, NamePart
from tsundoku.utils.file_utils import write_text_atomic
from tsundoku.utils.unified_logger import LogType, UnifiedLogger


def mapping_filename(module: str, novel_id: str) -> str:
    # ':' is not allowed in Windows file names
    if sys.platform == "win32":
        return f"{module} - {novel_id}.json"
    return f"{module}: {novel_id}.json"


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_name_info(original: str, raw: Any, path: str) -> NameInfo:
    if not isinstance(raw, dict):
        raise NameMappingStructureError(f"Entry for '{original}' must be an object", path)

    part = raw.get("part")
    if not isinstance(part, str):
        raise NameMappingStructureError(f"Entry for '{original}' needs a string 'part'", path)

    votes = raw.get("votes")
    if not isinstance(votes, dict) or not all(
        isinstance(english, str) and _is_count(count) for english, count in votes.items()
    ):
        raise NameMappingStructureError(
            f"Entry for '{original}' needs 'votes' mapping strings to non-negative integers", path
        )

    english = raw.get("english")
    if english is not None and not isinstance(english, str):
        raise NameMappingStructureError(f"Entry for '{original}' has a non-string 'english'", path)

    count = raw.get("count")
    if count is not None and not _is_count(count):
        raise NameMappingStructureError(f"Entry for '{original}' has an invalid 'count'", path)

    return NameInfo(part=NamePart.parse(part), votes=dict(votes), english=english, count=count)


def parse_mapping_document(document: Any, path: str = "") -> NameMappingData:
    """
    Validate a decoded mapping file and build NameMappingData from it.

    Raises:
        NameMappingStructureError: if the document does not have the expected shape
    """
    if not isinstance(document, dict):
        raise NameMappingStructureError("Root must be a JSON object", path)

    names = document.get("names")
    if not isinstance(names, dict):
        raise NameMappingStructureError("'names' must be an object", path)

    coverage = document.get("coverage")
    if not isinstance(coverage, list) or not all(_is_count(n) for n in coverage):
        raise NameMappingStructureError("'coverage' must be a list of non-negative integers", path)

    return NameMappingData(
        names={original: _parse_name_info(original, info, path) for original, info in names.items()},
        coverage=set(coverage),
    )


class NameMappingStore:
    """
    Vote-based glossary of character names for a single novel.

    Args:
        names_dir: Directory that holds all mapping files
        module: Scraper module name (e.g. 'syosetu')
        novel_id: Novel identifier within that module
        logger: Logger for skipped votes and purge reports
    """

    def __init__(
        self,
        names_dir: Union[str, Path],
        module: str,
        novel_id: str,
        logger: Optional[UnifiedLogger] = None,
    ):
        self.names_dir = Path(names_dir)
        self.module = module
        self.novel_id = novel_id
        self.path = self.names_dir / mapping_filename(module, novel_id)
        self.logger = logger or UnifiedLogger(console_output=False)
        self.data = NameMappingData()

        if self.path.exists():
            self.reload_from_disk()
        else:
            self.purge_bad_votes()

    # ------------------------------------------------------------------
    # Votes
    # ------------------------------------------------------------------

    def record_votes(self, entries: Iterable[NameEntry]) -> int:
        """
        Record one vote per admissible entry.

        Returns:
            Number of votes recorded
        """
        recorded = 0
        for entry in entries:
            original = entry.original.strip()
            english = entry.english.strip()
            part = NamePart.parse(entry.part)

            if not original or not english:
                continue
            if not is_original_admissible(original) or not is_english_admissible(english):
                self.logger.debug(
                    f"Skipping name vote {original} -> {english}",
                    LogType.NAME_VOTE,
                    {"original": original, "english": english},
                )
                continue

            info = self.data.names.get(original)
            if info is None:
                info = NameInfo()
                self.data.names[original] = info
            info.add_vote(english, part)
            recorded += 1

        return recorded

    def purge_bad_votes(self) -> int:
        """
        Drop everything the admissibility rules reject.

        Returns:
            Number of removed votes plus removed entries
        """
        removed = 0
        for original in list(self.data.names):
            info = self.data.names[original]

            if original != original.strip() or not is_original_admissible(original):
                del self.data.names[original]
                removed += 1
                continue

            # Recorded votes are trimmed, so padded keys come from hand edits
            for english in list(info.votes):
                if english != english.strip() or not is_english_admissible(english):
                    del info.votes[english]
                    removed += 1

            if not info.votes:
                del self.data.names[original]
                removed += 1
                continue

            info.recalculate_best()

        if removed:
            self.logger.info(f"Purged {removed} invalid name entries from {self.path.name}")
        return removed

    # ------------------------------------------------------------------
    # Coverage
    # ------------------------------------------------------------------

    def is_chapter_covered(self, chapter: int) -> bool:
        return chapter in self.data.coverage

    def add_coverage(self, chapters: Iterable[int]) -> None:
        self.data.coverage.update(chapters)

    # ------------------------------------------------------------------
    # Application
    # ------------------------------------------------------------------

    def apply_to_text(self, text: str) -> str:
        """
        Replace every known original name with its winning English rendering.

        Longer originals are replaced first so a full name is never shadowed
        by one of its parts.
        """
        mapping = self.data.english_mapping()
        for original in sorted(mapping, key=lambda key: (-len(key), key)):
            text = text.replace(original, mapping[original])
        return text

    def name_entries(self) -> List[Tuple[str, NameInfo]]:
        return sorted(self.data.names.items())

    def __len__(self) -> int:
        return len(self.data.names)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def to_json(self) -> str:
        return json.dumps(self.data.to_dict(), ensure_ascii=False, indent=2)

    def save(self) -> None:
        try:
            write_text_atomic(self.path, self.to_json())
        except OSError as e:
            raise NameMappingWriteError(f"Could not write name mapping: {e}", str(self.path)) from e

    def reload_from_disk(self) -> None:
        """
        Replace the in-memory glossary with the file contents.

        The file is validated, purged of inadmissible votes and written back,
        so a hand-edited file is normalized before it is used.

        Raises:
            NameMappingReadError: file cannot be read
            NameMappingParseError: file is not valid JSON
            NameMappingStructureError: JSON does not have the mapping shape
        """
        path = str(self.path)
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise NameMappingReadError(f"Could not read name mapping: {e}", path) from e

        try:
            document: Dict[str, Any] = json.loads(raw)
        except json.JSONDecodeError as e:
            raise NameMappingParseError(
                f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}", path
            ) from e

        self.data = parse_mapping_document(document, path)
        self.purge_bad_votes()
        self.save()
