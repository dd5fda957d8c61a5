"""Current-line lookup for a playback position."""

from __future__ import annotations

import bisect

from lyric_float.models import Lyric, LyricLine


def current_index(lyric: Lyric, position_ms: int) -> int:
    """Index of the last line whose offset is <= *position_ms*, or -1.

    With several lines at the same offset the last of them wins.
    """
    offsets = [line.offset_ms for line in lyric.lines]
    return bisect.bisect_right(offsets, position_ms) - 1


def current_line(lyric: Lyric, position_ms: int) -> LyricLine | None:
    idx = current_index(lyric, position_ms)
    return lyric.lines[idx] if idx >= 0 else None


class LineCursor:
    """Line lookup bound to one lyric.

    Keeps the offset list around so it can be queried on every position
    tick without rebuilding it. Holds no mutable state beyond that, so it
    can be shared between threads.
    """

    def __init__(self, lyric: Lyric) -> None:
        self._lyric = lyric
        self._offsets: tuple[int, ...] = tuple(line.offset_ms for line in lyric.lines)

    @property
    def lyric(self) -> Lyric:
        return self._lyric

    def index_at(self, position_ms: int) -> int:
        return bisect.bisect_right(self._offsets, position_ms) - 1

    def line_at(self, position_ms: int) -> LyricLine | None:
        idx = self.index_at(position_ms)
        return self._lyric.lines[idx] if idx >= 0 else None

    def __len__(self) -> int:
        return len(self._offsets)
