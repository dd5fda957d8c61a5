"""Configuration management for lyric-float."""

from __future__ import annotations

from lyric_float.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
