"""Leveled terminal logging with GitHub Actions workflow annotations.

Warnings and errors go to stderr. Inside a workflow run (``GITHUB_ACTIONS``
set to ``true``) they are prefixed with ``::warning::`` / ``::error::`` so the
runner surfaces them on the job page.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from enum import IntEnum

from rich.console import Console
from rich.text import Text


class LogLevel(IntEnum):
    TRACE = 10
    DEBUG = 20
    INFO = 30
    SUCCESS = 35
    WARNING = 40
    ERROR = 50


LEVEL_NAMES = tuple(level.name.lower() for level in LogLevel)
LEVEL_ENV = "PRWORKTREE_LOG_LEVEL"
_ALIASES = {"warn": LogLevel.WARNING}
_STYLES = {
    LogLevel.TRACE: "dim",
    LogLevel.DEBUG: "cyan",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "bold red",
}
_ANNOTATIONS = {LogLevel.WARNING: "warning", LogLevel.ERROR: "error"}


@dataclass
class _State:
    level: LogLevel | None = None
    no_color: bool | None = None


_state = _State()


def parse_level(value: str | None) -> LogLevel | None:
    """Return the level named by ``value``, or ``None`` if it names none.

    Example:
        >>> parse_level(" Warn ")
        <LogLevel.WARNING: 40>
        >>> parse_level("loud") is None
        True
    """
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in _ALIASES:
        return _ALIASES[normalized]
    if normalized in LEVEL_NAMES:
        return LogLevel[normalized.upper()]
    return None


def is_level_name(value: str) -> bool:
    return parse_level(value) is not None


def configured_level() -> LogLevel:
    if _state.level is None:
        _state.level = parse_level(os.environ.get(LEVEL_ENV)) or LogLevel.INFO
    return _state.level


def set_level(value: str | None) -> None:
    """Set the active level; unknown names fall back to ``info``."""
    _state.level = parse_level(value) or LogLevel.INFO


def set_no_color(value: bool) -> None:
    """Force colorized output off (``True``) or defer to the environment."""
    _state.no_color = True if value else None


def reset() -> None:
    """Forget overrides so the environment is consulted again."""
    _state.level = None
    _state.no_color = None


def is_enabled(level: LogLevel) -> bool:
    return level >= configured_level()


def _no_color() -> bool:
    if _state.no_color is not None:
        return _state.no_color
    return bool(os.environ.get("NO_COLOR") or os.environ.get("PRWORKTREE_NO_COLOR"))


def annotate(level: LogLevel, message: str) -> str:
    """Prefix a message with a workflow annotation when running in Actions.

    Example:
        >>> annotate(LogLevel.INFO, "hello")
        'hello'
    """
    command = _ANNOTATIONS.get(level)
    if command is None or os.environ.get("GITHUB_ACTIONS", "").strip().lower() != "true":
        return message
    return f"::{command}::{message}"


def emit(level: LogLevel, message: str, *, style: str | None = None) -> None:
    if not is_enabled(level):
        return
    console = Console(
        file=sys.stderr if level >= LogLevel.WARNING else sys.stdout,
        soft_wrap=True,
        highlight=False,
        no_color=_no_color(),
    )
    console.print(Text(annotate(level, message), style=style or _STYLES.get(level, "")))


def trace(message: str) -> None:
    emit(LogLevel.TRACE, message)


def debug(message: str) -> None:
    emit(LogLevel.DEBUG, message)


def info(message: str) -> None:
    emit(LogLevel.INFO, message)


def success(message: str) -> None:
    emit(LogLevel.SUCCESS, message)


def warning(message: str) -> None:
    emit(LogLevel.WARNING, message)


def error(message: str) -> None:
    emit(LogLevel.ERROR, message)
