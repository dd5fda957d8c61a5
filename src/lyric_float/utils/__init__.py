"""Utility modules."""

from __future__ import annotations

from lyric_float.utils.formatting import (
    fallback_text,
    format_lrc_timestamp,
    format_position,
    parse_position,
    sanitize_filename,
)

__all__ = [
    "sanitize_filename",
    "format_lrc_timestamp",
    "format_position",
    "parse_position",
    "fallback_text",
]
