"""
Greedy two-phase text chunker.

Lines are packed first so paragraphs stay together. Any chunk that is still
over budget (a very long single line) is packed again word by word. A single
word longer than the budget is emitted on its own and may exceed it.
"""

import re
from typing import Iterable, List


_WHITESPACE = re.compile(r"\s+")


def _accumulate(pieces: Iterable[str], joiner: str, max_chars: int) -> List[str]:
    """Greedily pack pieces joined by `joiner` into chunks of at most max_chars."""
    chunks: List[str] = []
    current = ""
    has_current = False

    for piece in pieces:
        if not has_current:
            current = piece
            has_current = True
            continue

        candidate_len = len(current) + len(joiner) + len(piece)
        if candidate_len > max_chars and current:
            chunks.append(current)
            current = piece
        else:
            current = current + joiner + piece

    if has_current and current:
        chunks.append(current)
    return chunks


def split_text_into_chunks(text: str, max_chars: int) -> List[str]:
    """
    Split text into non-empty chunks of at most max_chars characters.

    Args:
        text: Text to split
        max_chars: Character budget per chunk

    Returns:
        Chunks in order. Empty input yields an empty list.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be positive, got {max_chars}")
    if not text:
        return []

    line_chunks = _accumulate(text.split("\n"), "\n", max_chars)

    chunks: List[str] = []
    for chunk in line_chunks:
        if len(chunk) <= max_chars:
            chunks.append(chunk)
            continue
        words = [w for w in _WHITESPACE.split(chunk) if w]
        chunks.extend(_accumulate(words, " ", max_chars))

    return chunks
