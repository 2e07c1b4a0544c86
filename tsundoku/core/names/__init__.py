"""
Character name consensus: models, admissibility filters, store and scout.
"""

from tsundoku.core.names.models import NamePart, NameEntry, NameInfo, NameMappingData
from tsundoku.core.names.store import NameMappingStore
from tsundoku.core.names.scout import NameScout, build_chapter_payload, parse_response

__all__ = [
    "NamePart",
    "NameEntry",
    "NameInfo",
    "NameMappingData",
    "NameMappingStore",
    "NameScout",
    "build_chapter_payload",
    "parse_response",
]
