"""CLI entry point for lyric-float.

Headless commands for resolving lyrics, querying the current line for a
position, scanning a music library and downloading lyrics in bulk.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, NoReturn

import click

from lyric_float import __version__
from lyric_float.config.paths import CONFIG_FILE, ensure_dirs
from lyric_float.config.settings import Settings
from lyric_float.models import LibraryTrack, Lyric, PlaybackSnapshot, ProviderKind, TrackKey
from lyric_float.services.batch import BatchDownloader
from lyric_float.services.cursor import current_line
from lyric_float.services.providers import (
    EmbeddedTagProvider,
    LocalCacheProvider,
    NetworkProvider,
)
from lyric_float.services.resolver import LyricResolver
from lyric_float.services.scanner import LibraryIndex, read_track, scan
from lyric_float.services.session import LyricSession
from lyric_float.utils.formatting import fallback_text, format_lrc_timestamp, parse_position

logger = logging.getLogger(__name__)

_SOURCE_CHOICES = [kind.value for kind in ProviderKind]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _json_output(data: Any, *, compact: bool = False) -> None:
    """Print *data* as JSON to stdout."""
    indent = None if compact else 2
    click.echo(json.dumps(data, indent=indent, default=str, ensure_ascii=False))


def _error(msg: str) -> NoReturn:
    """Print an error message to stderr and exit with code 1."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _build_resolver(settings: Settings, index: LibraryIndex | None = None) -> LyricResolver:
    """Wire up the configured providers around one lyric cache directory."""
    cache = LocalCacheProvider(settings.lyrics_dir)
    providers: list[Any] = [cache]
    if index is not None:
        providers.append(EmbeddedTagProvider(index.locate))
    if settings.network.enabled:
        providers.append(
            NetworkProvider(
                base_url=settings.network.base_url,
                timeout=settings.network.timeout,
                user_agent=settings.network.user_agent,
                plain_fallback=settings.network.plain_fallback,
            )
        )
    return LyricResolver(providers, cache=cache)


def _priority(settings: Settings, sources: tuple[str, ...]) -> list[ProviderKind]:
    if sources:
        return [ProviderKind(s) for s in sources]
    return settings.lyric_priority()


def _index_for_file(track: TrackKey, file: Path | None) -> LibraryIndex | None:
    """Map *track* to *file* so the embedded-tag provider can read it."""
    if file is None:
        return None
    return LibraryIndex([LibraryTrack(track.title, track.artist, path=file)])


def _lyric_to_dict(lyric: Lyric) -> dict[str, Any]:
    return {
        "title": lyric.title,
        "artist": lyric.artist,
        "source": lyric.source.value,
        "lines": [
            {
                "offset_ms": line.offset_ms,
                "time": format_lrc_timestamp(line.offset_ms),
                "text": line.text,
            }
            for line in lyric.lines
        ],
    }


def _position(value: str) -> int:
    try:
        return parse_position(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="lyric-float")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.toml.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option(
    "--json",
    "compact_json",
    is_flag=True,
    hidden=True,
    help="Compact JSON output (no indentation).",
)
@click.pass_context
def main(ctx: click.Context, config_path: Path | None, verbose: bool, compact_json: bool) -> None:
    """lyric-float -- synced lyrics from embedded tags, a local cache and LRCLIB."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )
    if config_path is None:
        ensure_dirs()
        config_path = CONFIG_FILE
    ctx.ensure_object(dict)
    ctx.obj["compact"] = compact_json
    ctx.obj["settings"] = Settings.load(config_path)


# ---------------------------------------------------------------------------
# Single-track lookups
# ---------------------------------------------------------------------------


@main.command()
@click.argument("title")
@click.argument("artist")
@click.option(
    "--source",
    "-s",
    "sources",
    multiple=True,
    type=click.Choice(_SOURCE_CHOICES, case_sensitive=False),
    help="Source to try, in order (repeatable). Defaults to the configured priority.",
)
@click.option(
    "--file",
    "audio_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Audio file to read embedded lyrics from.",
)
@click.pass_context
def resolve(
    ctx: click.Context,
    title: str,
    artist: str,
    sources: tuple[str, ...],
    audio_file: Path | None,
) -> None:
    """Find lyrics for TITLE by ARTIST and print them as JSON."""
    settings = _settings(ctx)
    track = TrackKey(title, artist)
    resolver = _build_resolver(settings, _index_for_file(track, audio_file))
    lyric = resolver.resolve(track, _priority(settings, sources))
    if lyric is None:
        _error(f"No lyrics found for {title} by {artist}.")
    _json_output(_lyric_to_dict(lyric), compact=ctx.obj.get("compact", False))


@main.command()
@click.argument("title")
@click.argument("artist")
@click.argument("position")
@click.option(
    "--file",
    "audio_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Audio file to read embedded lyrics from.",
)
@click.pass_context
def line(
    ctx: click.Context, title: str, artist: str, position: str, audio_file: Path | None
) -> None:
    """Print the lyric line for POSITION (milliseconds or m:ss.xx)."""
    settings = _settings(ctx)
    position_ms = _position(position)
    track = TrackKey(title, artist)
    resolver = _build_resolver(settings, _index_for_file(track, audio_file))
    lyric = resolver.resolve(track, settings.lyric_priority())
    current = current_line(lyric, position_ms) if lyric is not None else None
    click.echo(current.text if current is not None else fallback_text(title, artist))


@main.command("cache-path")
@click.argument("title")
@click.argument("artist")
@click.pass_context
def cache_path(ctx: click.Context, title: str, artist: str) -> None:
    """Print where the .lrc file for TITLE by ARTIST is stored."""
    cache = LocalCacheProvider(_settings(ctx).lyrics_dir)
    click.echo(str(cache.path_for(TrackKey(title, artist))))


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------


def _library_dirs(settings: Settings, directories: tuple[Path, ...]) -> list[Path]:
    return list(directories) if directories else settings.music_dirs


@main.command("scan")
@click.argument("directories", nargs=-1, type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def scan_cmd(ctx: click.Context, directories: tuple[Path, ...]) -> None:
    """List audio files found in DIRECTORIES (default: configured music dirs)."""
    settings = _settings(ctx)
    tracks = scan(_library_dirs(settings, directories), recursive=settings.library.recursive)
    _json_output(
        [
            {"title": t.title, "artist": t.artist, "album": t.album, "path": str(t.path)}
            for t in tracks
        ],
        compact=ctx.obj.get("compact", False),
    )


@main.command()
@click.argument("paths", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option("--quiet", "-q", is_flag=True, help="Only print the summary.")
@click.pass_context
def download(ctx: click.Context, paths: tuple[Path, ...], quiet: bool) -> None:
    """Download lyrics for every track in PATHS (directories or audio files)."""
    settings = _settings(ctx)
    files = [p for p in paths if p.is_file()]
    dirs = [p for p in paths if p.is_dir()]

    tracks: list[LibraryTrack] = []
    if dirs or not files:
        library_dirs = _library_dirs(settings, tuple(dirs))
        tracks.extend(scan(library_dirs, recursive=settings.library.recursive))
    for f in files:
        track = read_track(f)
        if track is not None:
            tracks.append(track)

    if not tracks:
        _error("No audio files found.")

    resolver = _build_resolver(settings)
    cache = resolver.cache or LocalCacheProvider(settings.lyrics_dir)
    downloader = BatchDownloader(resolver, cache, priority=settings.batch_priority())

    with click.progressbar(length=len(tracks), label="Downloading lyrics", hidden=quiet) as bar:
        count = downloader.download_all(tracks, on_progress=lambda done, total: bar.update(1))

    if not quiet:
        for result in downloader.last_results:
            mark = "ok" if result.success else "--"
            source = result.source.value if result.source else result.error
            click.echo(f"  {mark} {result.track.title} — {result.track.artist} ({source})")
    click.echo(f"Downloaded lyrics for {count}/{len(tracks)} tracks.")


# ---------------------------------------------------------------------------
# Live follow
# ---------------------------------------------------------------------------


@main.command()
@click.argument("title")
@click.argument("artist")
@click.option("--start", "start", default="0", help="Start position (ms or m:ss.xx).")
@click.option(
    "--file",
    "audio_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Audio file to read embedded lyrics from.",
)
@click.pass_context
def follow(
    ctx: click.Context, title: str, artist: str, start: str, audio_file: Path | None
) -> None:
    """Print lyric lines for TITLE by ARTIST as if it were playing now."""
    settings = _settings(ctx)
    start_ms = _position(start)
    track = TrackKey(title, artist)
    resolver = _build_resolver(settings, _index_for_file(track, audio_file))
    try:
        asyncio.run(_follow(resolver, settings, track, start_ms))
    except KeyboardInterrupt:
        pass


async def _follow(
    resolver: LyricResolver, settings: Settings, track: TrackKey, start_ms: int
) -> None:
    session = LyricSession(
        resolver,
        priority=settings.lyric_priority(),
        on_display=lambda text: click.echo(text.replace("\n", " — ")),
        idle_text=settings.display.idle_text,
    )
    interval = max(settings.display.poll_interval_ms, 50) / 1000
    started = time.monotonic()

    def _snapshot() -> PlaybackSnapshot:
        elapsed_ms = int((time.monotonic() - started) * 1000)
        return PlaybackSnapshot(track.title, track.artist, start_ms + elapsed_ms, True)

    await session.update(_snapshot())
    await session.wait_idle()

    lyric = session.lyric
    if lyric is None or lyric.is_empty:
        await session.close()
        _error(f"No synced lyrics found for {track.title} by {track.artist}.")

    last_offset = lyric.lines[-1].offset_ms
    try:
        while True:
            snapshot = _snapshot()
            await session.update(snapshot)
            if snapshot.position_ms >= last_offset:
                break
            await asyncio.sleep(interval)
    finally:
        await session.close()
