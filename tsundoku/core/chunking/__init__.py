"""
Text chunking for translation and name scouting.
"""

from tsundoku.core.chunking.text_chunker import split_text_into_chunks

__all__ = ["split_text_into_chunks"]
