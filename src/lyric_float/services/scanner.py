"""Local music library scanning.

Walks music directories, reads title/artist/album tags with mutagen and
builds the track -> file mapping used by the embedded-tag provider and the
batch downloader.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from mutagen import File as MutagenFile
from mutagen import MutagenError

from lyric_float.models import LibraryTrack, TrackKey

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset({".mp3", ".flac", ".wav", ".m4a", ".ogg", ".opus", ".ape", ".wma"})

UNKNOWN_ARTIST = "Unknown Artist"

# Directory names never descended into (besides hidden ones).
_SKIP_DIRS = {"android"}


def is_audio_file(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def iter_audio_files(directories: Iterable[Path], recursive: bool = True) -> Iterator[Path]:
    """Yield audio files under *directories*; missing directories are skipped."""
    for root in directories:
        root = Path(root)
        if not root.is_dir():
            logger.debug("Skipping missing music directory %s", root)
            continue
        if not recursive:
            for entry in sorted(root.iterdir()):
                if entry.is_file() and is_audio_file(entry):
                    yield entry
            continue
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                d for d in dirnames if not d.startswith(".") and d.lower() not in _SKIP_DIRS
            )
            for name in sorted(filenames):
                path = Path(dirpath) / name
                if is_audio_file(path):
                    yield path


def _first(tags: object, key: str) -> str | None:
    try:
        value = tags.get(key)  # type: ignore[attr-defined]
    except (KeyError, ValueError):
        return None
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def read_track(path: Path) -> LibraryTrack | None:
    """Build a :class:`LibraryTrack` from a file's tags.

    Missing tags fall back to the file stem (title), "Unknown Artist" and an
    empty album. Files mutagen cannot read are logged and skipped.
    """
    try:
        audio = MutagenFile(path, easy=True)
    except (MutagenError, OSError) as exc:
        logger.warning("Could not read tags from %s: %s", path, exc)
        return None

    tags = getattr(audio, "tags", None) if audio is not None else None
    title = artist = album = None
    if tags is not None:
        title = _first(tags, "title")
        artist = _first(tags, "artist")
        album = _first(tags, "album")

    return LibraryTrack(
        title=title or path.stem,
        artist=artist or UNKNOWN_ARTIST,
        album=album or "",
        path=path.resolve(),
    )


def scan(directories: Iterable[Path], recursive: bool = True) -> list[LibraryTrack]:
    """Scan *directories* and return one track per distinct file."""
    tracks: list[LibraryTrack] = []
    seen: set[Path] = set()
    for path in iter_audio_files(directories, recursive=recursive):
        track = read_track(path)
        if track is None or track.path in seen:
            continue
        seen.add(track.path)
        tracks.append(track)
    logger.info("Scanned %d audio files", len(tracks))
    return tracks


class LibraryIndex:
    """Maps track identities to audio files. The first file seen for a key wins."""

    def __init__(self, tracks: Iterable[LibraryTrack] = ()) -> None:
        self._by_key: dict[TrackKey, LibraryTrack] = {}
        for track in tracks:
            self.add(track)

    def add(self, track: LibraryTrack) -> None:
        self._by_key.setdefault(track.key, track)

    def get(self, key: TrackKey) -> LibraryTrack | None:
        return self._by_key.get(key)

    def locate(self, key: TrackKey) -> Path | None:
        track = self._by_key.get(key)
        return track.path if track is not None else None

    def __len__(self) -> int:
        return len(self._by_key)

    def __iter__(self) -> Iterator[LibraryTrack]:
        return iter(self._by_key.values())
