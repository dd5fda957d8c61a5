"""Bulk lyric downloads for a scanned music library."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from lyric_float.models import LibraryTrack, LyricSource, ProviderKind
from lyric_float.services.lrc import parse_lrc, serialize_lrc
from lyric_float.services.providers import LocalCacheProvider
from lyric_float.services.resolver import LyricResolver

logger = logging.getLogger(__name__)

# Embedded tags are a live-playback optimisation; bulk mode never reads them.
BATCH_PRIORITY: tuple[ProviderKind, ...] = (ProviderKind.LOCAL, ProviderKind.NETWORK)

ProgressCallback = Callable[[int, int], object]


@dataclass
class DownloadResult:
    """Result of looking up lyrics for a single library track."""

    track: LibraryTrack
    success: bool
    source: LyricSource | None = None
    file_path: Path | None = None
    error: str | None = None


class BatchDownloader:
    """Resolves lyrics for many tracks and saves network results as .lrc files.

    Tracks already in the local cache count as successes without touching
    the network or the disk, so re-running over a library is cheap.
    """

    def __init__(
        self,
        resolver: LyricResolver,
        cache: LocalCacheProvider,
        priority: Sequence[ProviderKind] = BATCH_PRIORITY,
    ) -> None:
        self._resolver = resolver
        self._cache = cache
        self._priority = tuple(k for k in priority if k is not ProviderKind.EMBEDDED)
        self.last_results: list[DownloadResult] = []

    def download_one(self, track: LibraryTrack) -> DownloadResult:
        """Look up lyrics for one track, persisting anything fetched remotely."""
        key = track.key
        hit = self._resolver.resolve_raw(key, self._priority)
        if hit is None:
            return DownloadResult(track=track, success=False, error="No lyrics found")

        kind, document = hit
        if kind is not ProviderKind.NETWORK:
            return DownloadResult(track=track, success=True, source=kind.source)

        lyric = parse_lrc(document, track.title, track.artist, source=LyricSource.NETWORK)
        try:
            path = self._cache.store(key, serialize_lrc(lyric, track.album))
        except OSError as exc:
            return DownloadResult(
                track=track, success=False, source=LyricSource.NETWORK, error=str(exc)
            )
        return DownloadResult(
            track=track, success=True, source=LyricSource.NETWORK, file_path=path
        )

    def download_all(
        self,
        tracks: Iterable[LibraryTrack],
        on_progress: ProgressCallback | None = None,
    ) -> int:
        """Download lyrics for every track and return how many succeeded.

        A failure on one track never stops the batch. Per-track outcomes are
        kept in :attr:`last_results`. *on_progress* is called with
        ``(completed, total)`` after each track.
        """
        items = list(tracks)
        total = len(items)
        results: list[DownloadResult] = []
        successes = 0

        for i, track in enumerate(items, start=1):
            try:
                result = self.download_one(track)
            except Exception as exc:
                logger.warning("Lyric download failed for %s: %s", track.key, exc)
                result = DownloadResult(track=track, success=False, error=str(exc))
            results.append(result)
            if result.success:
                successes += 1
            else:
                logger.debug("No lyrics saved for %s: %s", track.key, result.error)
            if on_progress is not None:
                on_progress(i, total)

        self.last_results = results
        logger.info("Batch lyric download: %d/%d succeeded", successes, total)
        return successes
