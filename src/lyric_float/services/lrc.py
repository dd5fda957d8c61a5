"""LRC (time-tagged lyric) parsing and serialization."""

from __future__ import annotations

import re

from lyric_float.models import Lyric, LyricLine, LyricSource
from lyric_float.utils.formatting import format_lrc_timestamp

# [mm:ss.xx] or [mm:ss.xxx] at the start of a line, then the lyric text.
_LINE_RE = re.compile(r"^\[(\d{2}):(\d{2})\.(\d{2,3})\](.*)$")


def _offset_ms(minutes: str, seconds: str, fraction: str) -> int:
    # "5" -> 500, "50" -> 500, "500" -> 500
    millis = int(fraction.ljust(3, "0")[:3])
    return int(minutes) * 60_000 + int(seconds) * 1000 + millis


def parse_lrc(
    raw: str,
    title: str,
    artist: str,
    source: LyricSource = LyricSource.LOCAL_FILE,
) -> Lyric:
    """Parse an LRC document into a :class:`Lyric`.

    Lines without a leading timestamp (``[ti:...]`` headers, plain text) are
    skipped, as are timestamped lines with blank text. Never raises on
    malformed input; a document with nothing usable gives an empty lyric.
    The result is sorted by offset, keeping the original order for equal
    offsets.
    """
    lines: list[LyricLine] = []
    raw = raw.removeprefix("\ufeff")
    for line in raw.splitlines():
        match = _LINE_RE.match(line.strip())
        if not match:
            continue
        text = match.group(4).strip()
        if not text:
            continue
        lines.append(LyricLine(_offset_ms(*match.group(1, 2, 3)), text))
    lines.sort(key=lambda ln: ln.offset_ms)
    return Lyric(title=title, artist=artist, lines=tuple(lines), source=source)


def serialize_lrc(lyric: Lyric, album: str = "") -> str:
    """Render *lyric* as an LRC document with ``ti``/``ar``/``al`` headers.

    Offsets are written at centisecond resolution, so a parse of the output
    can differ from the input by up to 9 ms per line.
    """
    out = [
        f"[ti:{lyric.title}]",
        f"[ar:{lyric.artist}]",
        f"[al:{album}]",
        "",
    ]
    for line in sorted(lyric.lines, key=lambda ln: ln.offset_ms):
        out.append(f"[{format_lrc_timestamp(line.offset_ms)}]{line.text}")
    return "\n".join(out) + "\n"
