"""Formatting utilities for file names, timestamps and display values."""

from __future__ import annotations

import re

# Characters that are unsafe in file names on at least one common filesystem.
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|]')

_POSITION_RE = re.compile(r"^(?:(\d+):)?(\d{1,2})(?:\.(\d{1,3}))?$")


def sanitize_filename(name: str) -> str:
    """Replace path-unsafe characters with ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", name)


def format_lrc_timestamp(offset_ms: int) -> str:
    """Format milliseconds as an LRC ``mm:ss.xx`` timestamp (centiseconds, truncated)."""
    if offset_ms < 0:
        offset_ms = 0
    total_seconds, millis = divmod(offset_ms, 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes:02d}:{seconds:02d}.{millis // 10:02d}"


def format_position(position_ms: int) -> str:
    """Human-readable ``m:ss`` for log and CLI output."""
    if position_ms < 0:
        position_ms = 0
    minutes, seconds = divmod(position_ms // 1000, 60)
    return f"{minutes}:{seconds:02d}"


def parse_position(value: str) -> int:
    """Parse a playback position into milliseconds.

    Accepts plain milliseconds ("62500") or a clock value ("1:02.5",
    "1:02.50", "62.5"). A bare number without a colon or dot is milliseconds.

    Raises ValueError for anything else.
    """
    value = value.strip()
    if value.isdigit():
        return int(value)
    match = _POSITION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid position: {value!r}")
    minutes = int(match.group(1) or 0)
    seconds = int(match.group(2))
    frac = match.group(3) or ""
    millis = int(frac.ljust(3, "0")) if frac else 0
    return minutes * 60_000 + seconds * 1000 + millis


def fallback_text(title: str, artist: str) -> str:
    """Text shown while no lyric line applies: the raw track metadata."""
    return f"{title}\n{artist}"
