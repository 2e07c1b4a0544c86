"""
Admissibility rules for name votes.

All functions here are pure. They are applied both when votes are recorded
and when a glossary file is loaded, so hand-edited files are held to the same
rules as scout output.
"""

import re

from tsundoku.core.names.models import NameEntry

# Whitespace, Japanese and Latin punctuation, separators and brackets
BAD_ORIGINAL_CHARS = re.compile(
    r"[\s・･｡､,，。／/：:;!！?？\-—–‑·（）()［\]\[{}＜＞<>『』「」〈〉【】]"
)

JAPANESE_HONORIFIC_SUFFIX = re.compile(r"(さん|ちゃん|くん|君|様|さま|殿|氏|先生|先輩|嬢)$")

ENGLISH_HONORIFICS = ("-san", "-chan", "-kun", "-sama", " san", " chan", " kun", " sama")

# Pronouns and generic person words the model sometimes reports as names
ORIGINAL_NAME_DENYLIST = frozenset({
    "彼", "彼女", "あいつ", "こいつ", "そいつ", "こちとら", "こちら",
    "自分", "私", "わたし", "わたくし", "俺", "おれ", "僕", "ぼく", "うち",
    "あなた", "君", "きみ", "お前", "おまえ", "貴様",
    "彼ら", "彼女ら", "俺たち", "僕ら", "私たち", "あなたたち", "皆", "みんな",
})


def has_bad_original_chars(original: str) -> bool:
    return BAD_ORIGINAL_CHARS.search(original) is not None


def has_japanese_honorific(original: str) -> bool:
    return JAPANESE_HONORIFIC_SUFFIX.search(original) is not None


def has_english_honorific(english: str) -> bool:
    lowered = english.lower()
    return any(honorific in lowered for honorific in ENGLISH_HONORIFICS)


def has_internal_whitespace(english: str) -> bool:
    return any(ch.isspace() for ch in english.strip())


def is_denied_original(original: str) -> bool:
    return original in ORIGINAL_NAME_DENYLIST


def is_original_admissible(original: str) -> bool:
    """Whether an original string may be kept as a glossary key."""
    return bool(original) and not (
        has_bad_original_chars(original)
        or has_japanese_honorific(original)
        or is_denied_original(original)
    )


def is_english_admissible(english: str) -> bool:
    """Whether an English rendering may receive a vote."""
    return bool(english) and not (
        has_internal_whitespace(english)
        or has_english_honorific(english)
    )


def is_admissible(entry: NameEntry) -> bool:
    return is_original_admissible(entry.original) and is_english_admissible(entry.english)
