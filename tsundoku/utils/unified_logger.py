"""
Console logging for tsundoku.

One UnifiedLogger is built per run by the CLI and handed to every component
that reports progress. There is no module-level instance.
"""
import os
import sys
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, Optional, TextIO

from tqdm.auto import tqdm


class LogLevel(Enum):
    """Log levels with priority values"""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40


class LogType(Enum):
    """Types of log messages for special handling"""
    GENERAL = "general"
    SECTION = "section"
    STEP = "step"
    SUCCESS = "success"
    NAME_VOTE = "name_vote"
    CHUNK_FAILED = "chunk_failed"


class Colors:
    """ANSI color codes, empty strings when colors are off"""

    def __init__(self, enabled: bool = True, stream: Optional[TextIO] = None):
        stream = stream or sys.stdout
        if os.environ.get("NO_COLOR") is not None or not getattr(stream, "isatty", lambda: False)():
            enabled = False
        self.enabled = enabled
        self.YELLOW = '\033[93m' if enabled else ''
        self.WHITE = '\033[97m' if enabled else ''
        self.GRAY = '\033[90m' if enabled else ''
        self.CYAN = '\033[96m' if enabled else ''
        self.GREEN = '\033[92m' if enabled else ''
        self.RED = '\033[91m' if enabled else ''
        self.BOLD = '\033[1m' if enabled else ''
        self.ENDC = '\033[0m' if enabled else ''


class UnifiedLogger:
    """
    Structured console logger with a self-overwriting progress line
    """

    def __init__(self,
                 name: str = "tsundoku",
                 console_output: bool = True,
                 enable_colors: bool = True,
                 min_level: LogLevel = LogLevel.INFO,
                 stream: Optional[TextIO] = None):
        """
        Args:
            name: Logger name/identifier
            console_output: Whether to print to the console
            enable_colors: Whether to use colored output
            min_level: Minimum log level to display
            stream: Output stream, stdout by default
        """
        self.name = name
        self.console_output = console_output
        self.min_level = min_level
        self.stream = stream or sys.stdout
        self.colors = Colors(enable_colors, self.stream)
        self._progress_active = False
        self._bar_active = False

    def _format_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S")

    def _write(self, text: str) -> None:
        if self._progress_active:
            self.clear_progress()
        if self._bar_active:
            tqdm.write(text, file=self.stream)
        else:
            print(text, file=self.stream, flush=True)

    def _format_console_message(self, level: LogLevel, message: str, log_type: LogType) -> str:
        c = self.colors
        if log_type == LogType.SECTION:
            return f"\n{c.BOLD}{c.CYAN}== {message} =={c.ENDC}"
        if log_type == LogType.STEP:
            return f"{c.CYAN}-> {message}{c.ENDC}"
        if log_type == LogType.SUCCESS:
            return f"{c.GREEN}OK {message}{c.ENDC}"

        level_colors = {
            LogLevel.DEBUG: c.GRAY,
            LogLevel.INFO: c.WHITE,
            LogLevel.WARNING: c.YELLOW,
            LogLevel.ERROR: c.RED,
        }
        color = level_colors.get(level, c.WHITE)
        level_str = f"[{level.name}] " if level != LogLevel.INFO else ""
        return f"{color}[{self._format_timestamp()}] {level_str}{message}{c.ENDC}"

    def log(self, level: LogLevel, message: str,
            log_type: LogType = LogType.GENERAL,
            data: Optional[Dict[str, Any]] = None):
        """
        Main logging method

        Args:
            level: Log level
            message: Log message
            log_type: Type of log for special formatting
            data: Structured details, appended to the line at DEBUG level
        """
        if level.value < self.min_level.value:
            return

        if data and self.min_level == LogLevel.DEBUG:
            details = ", ".join(f"{k}={v}" for k, v in data.items())
            message = f"{message} ({details})"

        if self.console_output:
            try:
                self._write(self._format_console_message(level, message, log_type))
            except UnicodeEncodeError:
                # Consoles with a legacy code page cannot print Japanese
                safe_message = message.encode('ascii', 'replace').decode('ascii')
                self._write(f"[{self._format_timestamp()}] {safe_message}")

    def debug(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.DEBUG, message, log_type, data)

    def info(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, log_type, data)

    def warning(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.WARNING, message, log_type, data)

    def error(self, message: str, log_type: LogType = LogType.GENERAL, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.ERROR, message, log_type, data)

    def section(self, title: str):
        self.log(LogLevel.INFO, title, LogType.SECTION)

    def step(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, LogType.STEP, data)

    def success(self, message: str, data: Optional[Dict[str, Any]] = None):
        self.log(LogLevel.INFO, message, LogType.SUCCESS, data)

    def progress(self, message: str):
        """Overwrite the current console line with a progress message."""
        if not self.console_output:
            return
        c = self.colors
        self.stream.write(f"\r\033[K{c.GRAY}{message}{c.ENDC}" if c.enabled else f"\r{message}")
        self.stream.flush()
        self._progress_active = True

    def clear_progress(self):
        if not self._progress_active:
            return
        self._progress_active = False
        self.stream.write("\r\033[K" if self.colors.enabled else "\n")
        self.stream.flush()

    @contextmanager
    def progress_bar(self, total: int, desc: str) -> Iterator[tqdm]:
        """tqdm bar that cooperates with log output while it is open."""
        bar = tqdm(total=total, desc=desc, unit="ch", file=self.stream,
                   disable=not self.console_output, leave=True)
        self._bar_active = self.console_output
        try:
            yield bar
        finally:
            self._bar_active = False
            bar.close()
