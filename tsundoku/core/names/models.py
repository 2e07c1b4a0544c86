"""
Data models for the name glossary.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Set


class NamePart(Enum):
    """Which part of a person's name a string is."""
    FAMILY = "family"
    GIVEN = "given"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "NamePart":
        """Case-insensitive parse; anything unrecognised becomes UNKNOWN."""
        if isinstance(value, NamePart):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for part in cls:
                if part.value == normalized:
                    return part
        return cls.UNKNOWN


@dataclass
class NameEntry:
    """A single name candidate proposed by the scout."""
    original: str
    english: str
    part: NamePart = NamePart.UNKNOWN


@dataclass
class NameInfo:
    """Vote tally and current winner for one original name."""
    part: NamePart = NamePart.UNKNOWN
    votes: Dict[str, int] = field(default_factory=dict)
    english: Optional[str] = None
    count: Optional[int] = None

    def add_vote(self, english: str, part: NamePart) -> None:
        if self.part == NamePart.UNKNOWN and part != NamePart.UNKNOWN:
            self.part = part
        self.votes[english] = self.votes.get(english, 0) + 1
        self.recalculate_best()

    def recalculate_best(self) -> None:
        """
        Pick the English rendering with the most votes.

        A challenger needs strictly more votes than the current winner, so on
        a tie the previously recorded winner stays in place.
        """
        if not self.votes:
            self.english = None
            self.count = None
            return

        best = self.english if self.english in self.votes else None
        best_count = self.votes[best] if best is not None else 0

        for english, count in self.votes.items():
            if count > best_count:
                best = english
                best_count = count

        self.english = best
        self.count = best_count if best is not None else None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "part": self.part.value,
            "votes": dict(self.votes),
        }
        if self.english is not None:
            data["english"] = self.english
        if self.count is not None:
            data["count"] = self.count
        return data


@dataclass
class NameMappingData:
    """Root document of a name mapping file."""
    names: Dict[str, NameInfo] = field(default_factory=dict)
    coverage: Set[int] = field(default_factory=set)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "names": {original: info.to_dict() for original, info in self.names.items()},
            "coverage": sorted(self.coverage),
        }

    def english_mapping(self) -> Dict[str, str]:
        """original -> winning English rendering, for names that have one."""
        return {
            original: info.english
            for original, info in self.names.items()
            if info.english
        }

