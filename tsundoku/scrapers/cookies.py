"""
Netscape cookie file support.

Browser extensions export cookies in this tab-separated format. Files are
looked up in the config directory so a logged-in session can be reused.
"""

import os
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional

import httpx

HTTP_ONLY_PREFIX = "#HttpOnly_"


class NetscapeCookie(NamedTuple):
    domain: str
    path: str
    secure: bool
    name: str
    value: str


def find_cookie_file(root: Path, name_tokens: Iterable[str]) -> Optional[Path]:
    """Most recently modified *.txt below root whose name contains every token."""
    tokens = [token.lower() for token in name_tokens]
    best: Optional[Path] = None
    best_mtime = -1.0

    if not root.is_dir():
        return None

    for dirpath, _, filenames in os.walk(root):
        for filename in filenames:
            lowered = filename.lower()
            if not lowered.endswith(".txt") or not all(token in lowered for token in tokens):
                continue
            path = Path(dirpath) / filename
            mtime = path.stat().st_mtime
            if mtime > best_mtime:
                best, best_mtime = path, mtime
    return best


def parse_netscape_cookies(content: str) -> List[NetscapeCookie]:
    """
    Parse cookie file content.

    Raises:
        ValueError: on a line that does not have seven tab-separated fields
    """
    cookies = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if line.startswith(HTTP_ONLY_PREFIX):
            line = line[len(HTTP_ONLY_PREFIX):]
        elif line.startswith("#"):
            continue

        fields = line.split("\t", 6)
        if len(fields) != 7:
            raise ValueError(f"Invalid Netscape cookie line: {line}")
        domain, _, path, secure, _, name, value = fields
        cookies.append(NetscapeCookie(domain, path, secure.lower() == "true", name, value))
    return cookies


def load_cookie_file(root: Path, name_tokens: Iterable[str]):
    """
    Returns:
        (httpx.Cookies, path of the file used or None)
    """
    jar = httpx.Cookies()
    path = find_cookie_file(root, name_tokens)
    if path is None:
        return jar, None

    for cookie in parse_netscape_cookies(path.read_text(encoding="utf-8")):
        jar.set(cookie.name, cookie.value, domain=cookie.domain, path=cookie.path or "/")
    return jar, path
