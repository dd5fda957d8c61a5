"""Lyric source providers: embedded audio tags, the local .lrc cache, and LRCLIB.

Every provider exposes ``fetch(track)``, returning the raw lyric document for
the track or ``None``. The embedded provider may also raise on unreadable
files; the resolver treats that the same as ``None``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

import requests
from mutagen import File as MutagenFile
from mutagen.flac import FLAC
from mutagen.id3 import ID3, ID3NoHeaderError
from mutagen.mp4 import MP4
from mutagen.oggopus import OggOpus
from mutagen.oggvorbis import OggVorbis

from lyric_float.models import ProviderKind, TrackKey
from lyric_float.utils.formatting import sanitize_filename

logger = logging.getLogger(__name__)

# Tag keys used by common taggers (and by LRCGET-style tools) for lyrics.
VORBIS_SYNCED_KEY = "LYRICS"
VORBIS_PLAIN_KEY = "UNSYNCEDLYRICS"
ID3_SYNCED_DESC = "LYRICS"
MP4_PLAIN_KEY = "\xa9lyr"
MP4_SYNCED_KEY = "----:com.lrclib:LYRICS"

_HAS_TIMESTAMP = re.compile(r"\[\d{2}:\d{2}\.\d{2,3}\]")

_VORBIS_CLASSES = {
    ".flac": FLAC,
    ".ogg": OggVorbis,
    ".oga": OggVorbis,
    ".opus": OggOpus,
}

TrackLocator = Callable[[TrackKey], Path | None]


class LyricCacheError(OSError):
    """Raised when writing a lyric file to the cache directory fails."""


class LyricProvider(Protocol):
    kind: ProviderKind

    def fetch(self, track: TrackKey) -> str | None: ...


def _first_text(value: object) -> str | None:
    """Normalise a tag value (list, bytes, frame text) to stripped text or None."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _pick(synced: str | None, plain: str | None) -> str | None:
    # Plain lyric fields are only useful when a tagger stuffed LRC into them.
    if synced:
        return synced
    if plain and _HAS_TIMESTAMP.search(plain):
        return plain
    return None


# ── Embedded tags ───────────────────────────────────────────────────


def _id3_lyrics(tags: ID3) -> str | None:
    synced = None
    for frame in tags.getall("TXXX"):
        if getattr(frame, "desc", "").upper() == ID3_SYNCED_DESC:
            synced = _first_text(frame.text)
            break
    plain = None
    uslt = tags.getall("USLT")
    if uslt:
        plain = _first_text(uslt[0].text)
    return _pick(synced, plain)


def read_embedded_lyrics(path: Path) -> str | None:
    """Read a lyric document from the audio file's tag.

    Synced fields win over plain ones. Raises mutagen/OS errors for
    unreadable files.
    """
    ext = path.suffix.lower()

    if ext == ".mp3":
        try:
            tags = ID3(path)
        except ID3NoHeaderError:
            return None
        return _id3_lyrics(tags)

    if ext in _VORBIS_CLASSES:
        audio = _VORBIS_CLASSES[ext](path)
        return _pick(
            _first_text(audio.get(VORBIS_SYNCED_KEY)),
            _first_text(audio.get(VORBIS_PLAIN_KEY)),
        )

    if ext in (".m4a", ".mp4"):
        audio = MP4(path)
        return _pick(
            _first_text(audio.get(MP4_SYNCED_KEY)),
            _first_text(audio.get(MP4_PLAIN_KEY)),
        )

    audio = MutagenFile(path)
    if audio is None or not getattr(audio, "tags", None):
        return None
    # WAV and AIFF carry ID3 frames, not key/value comments.
    if isinstance(audio.tags, ID3):
        return _id3_lyrics(audio.tags)
    for key in (VORBIS_SYNCED_KEY, "lyrics", VORBIS_PLAIN_KEY):
        try:
            text = _first_text(audio.tags.get(key))
        except (KeyError, ValueError):
            continue
        if text and _HAS_TIMESTAMP.search(text):
            return text
    return None


class EmbeddedTagProvider:
    """Reads lyrics from the tag of the audio file currently mapped to a track."""

    kind = ProviderKind.EMBEDDED

    def __init__(self, locate: TrackLocator) -> None:
        self._locate = locate

    def fetch(self, track: TrackKey) -> str | None:
        path = self._locate(track)
        if path is None:
            logger.debug("No audio file mapped for %s", track)
            return None
        if not path.is_file():
            logger.debug("Mapped audio file %s does not exist", path)
            return None
        return read_embedded_lyrics(path)


# ── Local .lrc cache ────────────────────────────────────────────────


class LocalCacheProvider:
    """Looks up ``.lrc`` files in a single cache directory.

    Also owns writing to that directory, so lookups and writes always agree
    on file naming.
    """

    kind = ProviderKind.LOCAL

    def __init__(self, cache_dir: Path) -> None:
        self._cache_dir = cache_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def candidates(self, track: TrackKey) -> list[Path]:
        """File names tried by :meth:`fetch`, in lookup order."""
        title = sanitize_filename(track.title)
        artist = sanitize_filename(track.artist)
        names = [f"{title}-{artist}.lrc", f"{artist}-{title}.lrc", f"{title}.lrc"]
        paths: list[Path] = []
        for name in names:
            path = self._cache_dir / name
            if path not in paths:
                paths.append(path)
        return paths

    def path_for(self, track: TrackKey) -> Path:
        """Where :meth:`store` writes the document for *track*."""
        return self.candidates(track)[0]

    def fetch(self, track: TrackKey) -> str | None:
        for path in self.candidates(track):
            if path.is_file():
                logger.debug("Local lyric hit: %s", path)
                return path.read_text(encoding="utf-8-sig", errors="replace")
        return None

    def store(self, track: TrackKey, document: str) -> Path:
        """Write *document* for *track* and return its path."""
        dest = self.path_for(track)
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            dest.write_text(document, encoding="utf-8")
        except OSError as exc:
            logger.warning("Lyric cache write failed for %s: %s", track, exc)
            raise LyricCacheError(f"Failed to cache lyrics for {track}: {exc}") from exc
        logger.info("Saved lyrics to %s", dest)
        return dest


# ── LRCLIB ──────────────────────────────────────────────────────────


_DEFAULT_BASE_URL = "https://lrclib.net"
_DEFAULT_TIMEOUT = 5


class NetworkProvider:
    """Fetches lyrics from LRCLIB's ``/api/get`` endpoint.

    Any non-success status, transport error or unexpected body counts as a
    miss. There are no retries; callers that want them resolve again.
    """

    kind = ProviderKind.NETWORK

    def __init__(
        self,
        base_url: str = _DEFAULT_BASE_URL,
        timeout: float = _DEFAULT_TIMEOUT,
        user_agent: str = "lyric-float",
        plain_fallback: bool = False,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._plain_fallback = plain_fallback
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": user_agent})

    def fetch(self, track: TrackKey) -> str | None:
        params = {
            "track_name": track.title,
            "artist_name": track.artist,
        }
        try:
            resp = self._session.get(
                f"{self._base_url}/api/get", params=params, timeout=self._timeout
            )
        except requests.RequestException:
            logger.debug("LRCLIB request failed for %s", track, exc_info=True)
            return None

        if not resp.ok:
            logger.debug("LRCLIB returned HTTP %s for %s", resp.status_code, track)
            return None

        try:
            data = resp.json()
        except ValueError:
            logger.debug("LRCLIB returned a non-JSON body for %s", track)
            return None
        if not isinstance(data, dict):
            return None

        synced = _first_text(data.get("syncedLyrics"))
        if synced:
            return synced
        if self._plain_fallback:
            return _first_text(data.get("plainLyrics"))
        return None

    def close(self) -> None:
        self._session.close()
