"""Centralized path definitions for lyric-float.

Single source of truth for all filesystem paths used across the application.
Respects $XDG_CONFIG_HOME and $XDG_DATA_HOME when set.
"""

from __future__ import annotations

import os
from pathlib import Path

_xdg_config = os.environ.get("XDG_CONFIG_HOME")
_xdg_data = os.environ.get("XDG_DATA_HOME")

CONFIG_DIR = (
    (Path(_xdg_config) / "lyric-float")
    if _xdg_config
    else (Path.home() / ".config" / "lyric-float")
)
CONFIG_FILE = CONFIG_DIR / "config.toml"

DATA_DIR = (
    (Path(_xdg_data) / "lyric-float")
    if _xdg_data
    else (Path.home() / ".local" / "share" / "lyric-float")
)
# Downloaded .lrc files live here and are never expired automatically.
LYRICS_DIR = DATA_DIR / "lyrics"

DEFAULT_MUSIC_DIRS = (Path.home() / "Music", Path.home() / "Downloads")

_dirs_ensured = False


def ensure_dirs() -> None:
    """Create config and lyrics directories.

    Called lazily on first invocation (not at import time) so that merely
    importing the module does not create directories on disk.
    """
    global _dirs_ensured
    if _dirs_ensured:
        return
    for _dir in (CONFIG_DIR, LYRICS_DIR):
        _dir.mkdir(parents=True, exist_ok=True)
    _dirs_ensured = True
