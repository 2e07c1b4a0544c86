"""
File utilities for translation output
"""
import os
import re
import tempfile
from pathlib import Path
from typing import Union

import aiofiles
import aiofiles.os

PathLike = Union[str, Path]

_INVALID_FILENAME_CHARS = re.compile(r'[\\/*?"<>|]')


def sanitize_filename(name: str) -> str:
    """
    Make a string safe to use as a file name.

    Replaces path separators and characters Windows rejects with '_' and
    removes trailing dots and spaces.

    Examples:
        'A/B: "C"?' -> 'A_B: _C__'
        'Title. ' -> 'Title'
    """
    return _INVALID_FILENAME_CHARS.sub("_", name).rstrip(". ")


def expand_path(path: PathLike) -> Path:
    """Expand a leading '~' to the user's home directory."""
    return Path(os.path.expanduser(str(path)))


def _temp_path_for(path: Path) -> Path:
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    os.close(fd)
    return Path(tmp_name)


def write_text_atomic(path: PathLike, content: str) -> None:
    """
    Write text to path so readers never observe a partially written file.

    The content goes to a temporary file in the same directory which then
    replaces the target in a single rename.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = _temp_path_for(target)
    try:
        with open(tmp, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp, target)
    except BaseException:
        if tmp.exists():
            tmp.unlink()
        raise


async def write_text_atomic_async(path: PathLike, content: str) -> None:
    """Async version of write_text_atomic, used by the workflow."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = _temp_path_for(target)
    try:
        async with aiofiles.open(tmp, "w", encoding="utf-8", newline="") as f:
            await f.write(content)
        await aiofiles.os.replace(tmp, target)
    except BaseException:
        if tmp.exists():
            tmp.unlink()
        raise


async def read_text_async(path: PathLike) -> str:
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        return await f.read()
