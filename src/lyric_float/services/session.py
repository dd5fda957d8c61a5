"""Playback session: turns playback snapshots into display text.

This is the caller layer around the lyric engine. It decides when to
resolve (once per track change), keeps resolution off the event loop,
makes sure only one resolution per track is in flight, and throws away
results that arrive after the track has already changed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any

from lyric_float.models import DEFAULT_PRIORITY, Lyric, PlaybackSnapshot, ProviderKind, TrackKey
from lyric_float.services.cursor import LineCursor
from lyric_float.services.resolver import LyricResolver
from lyric_float.utils.formatting import fallback_text

logger = logging.getLogger(__name__)

DisplayCallback = Callable[[str], Any]


class LyricSession:
    """Follows one media player and pushes the text to show for it.

    ``update()`` should be called on every playback state change and on a
    timer while playing. ``on_display`` is called only when the text
    changes: the current lyric line, ``"title\\nartist"`` while no line
    applies, or *idle_text* when nothing is playing.
    """

    def __init__(
        self,
        resolver: LyricResolver,
        priority: Iterable[ProviderKind] = DEFAULT_PRIORITY,
        on_display: DisplayCallback | None = None,
        idle_text: str = "Not playing",
    ) -> None:
        self._resolver = resolver
        self._priority = tuple(priority)
        self._on_display = on_display
        self._idle_text = idle_text

        self._current_track: TrackKey | None = None
        self._cursor: LineCursor | None = None
        self._last_snapshot: PlaybackSnapshot | None = None
        self._display_text: str | None = None
        self._pending: dict[TrackKey, asyncio.Future[Lyric | None]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    # ── State ───────────────────────────────────────────────────────

    @property
    def current_track(self) -> TrackKey | None:
        return self._current_track

    @property
    def lyric(self) -> Lyric | None:
        return self._cursor.lyric if self._cursor is not None else None

    @property
    def display_text(self) -> str | None:
        return self._display_text

    @property
    def is_resolving(self) -> bool:
        return bool(self._pending)

    # ── Input ───────────────────────────────────────────────────────

    async def update(self, snapshot: PlaybackSnapshot) -> None:
        """Consume a playback snapshot and push the matching display text."""
        self._last_snapshot = snapshot
        track = snapshot.track
        if track != self._current_track:
            logger.debug("Track changed: %s -> %s", self._current_track, track)
            self._current_track = track
            self._cursor = None
            self._start_resolution(track)
        self._push(self._text_for(snapshot))

    def refresh(self) -> None:
        """Forget the current lyric; the next update resolves it again."""
        logger.debug("Refreshing lyrics for %s", self._current_track)
        self._current_track = None
        self._cursor = None

    async def wait_idle(self) -> None:
        """Wait for every in-flight resolution started by this session."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*list(self._tasks), return_exceptions=True)
        self._tasks.clear()

    # ── Resolution ──────────────────────────────────────────────────

    async def resolve(self, track: TrackKey) -> Lyric | None:
        """Resolve *track* in a worker thread.

        Concurrent calls for the same track share a single resolution.
        The result is applied only if *track* is still the current track.
        """
        if track in self._pending:
            return await self._pending[track]

        future: asyncio.Future[Lyric | None] = asyncio.get_running_loop().create_future()
        self._pending[track] = future
        try:
            lyric = await asyncio.to_thread(self._resolver.resolve, track, self._priority)
            future.set_result(lyric)
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved; the error is re-raised to this caller anyway.
            future.exception()
            raise
        finally:
            # Cancellation skips both branches above; release other waiters.
            if not future.done():
                future.cancel()
            self._pending.pop(track, None)

        self._apply(track, lyric)
        return lyric

    def _start_resolution(self, track: TrackKey) -> None:
        if track in self._pending:
            return
        task = asyncio.get_running_loop().create_task(self._resolve_in_background(track))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _resolve_in_background(self, track: TrackKey) -> None:
        try:
            await self.resolve(track)
        except Exception:
            logger.warning("Lyric resolution failed for %s", track, exc_info=True)

    def _apply(self, track: TrackKey, lyric: Lyric | None) -> None:
        if track != self._current_track:
            logger.debug("Discarding lyrics for %s; track changed", track)
            return
        self._cursor = LineCursor(lyric) if lyric is not None else None
        if self._last_snapshot is not None and self._last_snapshot.track == track:
            self._push(self._text_for(self._last_snapshot))

    # ── Output ──────────────────────────────────────────────────────

    def _text_for(self, snapshot: PlaybackSnapshot) -> str:
        if not snapshot.is_playing:
            return self._idle_text
        if self._cursor is not None:
            line = self._cursor.line_at(snapshot.position_ms)
            if line is not None:
                return line.text
        return fallback_text(snapshot.title, snapshot.artist)

    def _push(self, text: str) -> None:
        if text == self._display_text:
            return
        self._display_text = text
        if self._on_display is None:
            return
        try:
            self._on_display(text)
        except Exception:
            logger.debug("Display callback failed", exc_info=True)
