"""Value types shared by the lyric engine, the session layer and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from pathlib import Path


class LyricSource(StrEnum):
    """Where a resolved lyric came from."""

    EMBEDDED = auto()
    LOCAL_FILE = auto()
    NETWORK = auto()


class ProviderKind(StrEnum):
    """Lyric source providers, in the names used by config files and the CLI."""

    EMBEDDED = auto()
    LOCAL = auto()
    NETWORK = auto()

    @property
    def source(self) -> LyricSource:
        return _KIND_TO_SOURCE[self]


_KIND_TO_SOURCE: dict[ProviderKind, LyricSource] = {
    ProviderKind.EMBEDDED: LyricSource.EMBEDDED,
    ProviderKind.LOCAL: LyricSource.LOCAL_FILE,
    ProviderKind.NETWORK: LyricSource.NETWORK,
}

DEFAULT_PRIORITY: tuple[ProviderKind, ...] = (
    ProviderKind.EMBEDDED,
    ProviderKind.LOCAL,
    ProviderKind.NETWORK,
)


@dataclass(frozen=True, slots=True)
class TrackKey:
    """Identity of a track.

    Comparison is exact on both fields: "Song" and "song " are different
    tracks as far as the engine is concerned.
    """

    title: str
    artist: str

    def __str__(self) -> str:
        return f"{self.title} — {self.artist}"


@dataclass(frozen=True, slots=True)
class LyricLine:
    offset_ms: int
    text: str


@dataclass(frozen=True, slots=True)
class Lyric:
    """A parsed lyric. ``lines`` is sorted by offset; an empty tuple is valid."""

    title: str
    artist: str
    lines: tuple[LyricLine, ...] = ()
    source: LyricSource = LyricSource.LOCAL_FILE

    @property
    def track(self) -> TrackKey:
        return TrackKey(self.title, self.artist)

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True, slots=True)
class PlaybackSnapshot:
    """Playback state as reported by whatever is monitoring the media player."""

    title: str
    artist: str
    position_ms: int = 0
    is_playing: bool = False

    @property
    def track(self) -> TrackKey:
        return TrackKey(self.title, self.artist)


@dataclass(frozen=True, slots=True)
class LibraryTrack:
    """An audio file found on disk, with the tags needed to look up lyrics."""

    title: str
    artist: str
    album: str = ""
    path: Path | None = None

    @property
    def key(self) -> TrackKey:
        return TrackKey(self.title, self.artist)
