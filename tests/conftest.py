"""Shared test fixtures for lyric-float."""

from pathlib import Path

import pytest

from lyric_float.models import LibraryTrack, ProviderKind, TrackKey

SAMPLE_LRC = """[ti:Never Gonna Give You Up]
[ar:Rick Astley]
[al:Whenever You Need Somebody]

[00:18.50]We're no strangers to love
[00:22.80]You know the rules and so do I
[00:27.00]A full commitment's what I'm thinking of
[00:31.40]You wouldn't get this from any other guy
"""


class FakeProvider:
    """Provider test double that records every lookup."""

    def __init__(
        self,
        kind: ProviderKind,
        document: str | None = None,
        error: Exception | None = None,
    ):
        self.kind = kind
        self.document = document
        self.error = error
        self.calls: list[TrackKey] = []

    def fetch(self, track: TrackKey) -> str | None:
        self.calls.append(track)
        if self.error is not None:
            raise self.error
        return self.document


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def tmp_lyrics_dir(tmp_path):
    """Create a temporary lyric cache directory."""
    lyrics_dir = tmp_path / "lyrics"
    lyrics_dir.mkdir()
    return lyrics_dir


@pytest.fixture
def sample_lrc() -> str:
    return SAMPLE_LRC


@pytest.fixture
def sample_key() -> TrackKey:
    return TrackKey("Never Gonna Give You Up", "Rick Astley")


def _make_track(
    title: str = "Never Gonna Give You Up",
    artist: str = "Rick Astley",
    album: str = "Whenever You Need Somebody",
    path: str = "/music/rick.mp3",
) -> LibraryTrack:
    return LibraryTrack(title=title, artist=artist, album=album, path=Path(path))


@pytest.fixture
def sample_tracks() -> list[LibraryTrack]:
    return [
        _make_track("Track One", "Artist A", "Album A", "/music/01.mp3"),
        _make_track("Track Two", "Artist B", "Album B", "/music/02.mp3"),
        _make_track("Track Three", "Artist C", "", "/music/03.flac"),
        _make_track("Track Four", "Artist D", "Album D", "/music/04.m4a"),
        _make_track("Track Five", "Artist E", "Album E", "/music/05.ogg"),
    ]
