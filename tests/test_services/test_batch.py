"""Tests for lyric_float.services.batch.BatchDownloader."""

from unittest.mock import MagicMock

from conftest import FakeProvider

from lyric_float.models import LibraryTrack, LyricSource, ProviderKind
from lyric_float.services.batch import BATCH_PRIORITY, BatchDownloader, DownloadResult
from lyric_float.services.lrc import parse_lrc
from lyric_float.services.providers import LocalCacheProvider
from lyric_float.services.resolver import LyricResolver

NET_LRC = "[00:01.00]from the network\n[00:02.50]second line\n"


class KeyedNetwork:
    """Network double that only knows some tracks and can fail for others."""

    kind = ProviderKind.NETWORK

    def __init__(self, known: dict[str, str], broken: set[str] = frozenset()):
        self.known = known
        self.broken = broken
        self.calls: list[str] = []

    def fetch(self, track):
        self.calls.append(track.title)
        if track.title in self.broken:
            raise OSError("connection reset")
        return self.known.get(track.title)


def _downloader(tmp_lyrics_dir, network, extra=()):
    cache = LocalCacheProvider(tmp_lyrics_dir)
    resolver = LyricResolver([cache, network, *extra])
    return BatchDownloader(resolver, cache), cache


class TestDownloadResult:
    def test_success_result(self):
        r = DownloadResult(track=LibraryTrack("T", "A"), success=True, source=LyricSource.NETWORK)
        assert r.success
        assert r.error is None

    def test_failure_result(self):
        r = DownloadResult(track=LibraryTrack("T", "A"), success=False, error="No lyrics found")
        assert not r.success
        assert r.file_path is None


class TestDownloadOne:
    def test_network_result_is_serialised(self, tmp_lyrics_dir):
        network = KeyedNetwork({"Song": NET_LRC})
        downloader, cache = _downloader(tmp_lyrics_dir, network)
        track = LibraryTrack("Song", "Artist", "Album")

        result = downloader.download_one(track)

        assert result.success
        assert result.source is LyricSource.NETWORK
        assert result.file_path == tmp_lyrics_dir / "Song-Artist.lrc"
        content = result.file_path.read_text(encoding="utf-8")
        assert content.splitlines()[:4] == ["[ti:Song]", "[ar:Artist]", "[al:Album]", ""]
        assert "[00:02.50]second line" in content

    def test_saved_file_is_found_by_local_provider(self, tmp_lyrics_dir):
        network = KeyedNetwork({"Song": NET_LRC})
        downloader, cache = _downloader(tmp_lyrics_dir, network)
        track = LibraryTrack("Song", "Artist")

        downloader.download_one(track)

        saved = parse_lrc(cache.fetch(track.key), "Song", "Artist")
        assert [ln.text for ln in saved.lines] == ["from the network", "second line"]

    def test_cached_track_needs_no_network_or_write(self, tmp_lyrics_dir):
        path = tmp_lyrics_dir / "Song-Artist.lrc"
        path.write_text("[00:01.00]already here\n", encoding="utf-8")
        mtime = path.stat().st_mtime_ns
        network = KeyedNetwork({"Song": NET_LRC})
        downloader, _ = _downloader(tmp_lyrics_dir, network)

        result = downloader.download_one(LibraryTrack("Song", "Artist"))

        assert result.success
        assert result.source is LyricSource.LOCAL_FILE
        assert result.file_path is None
        assert network.calls == []
        assert path.stat().st_mtime_ns == mtime
        assert path.read_text(encoding="utf-8") == "[00:01.00]already here\n"

    def test_embedded_is_never_consulted(self, tmp_lyrics_dir):
        embedded = FakeProvider(ProviderKind.EMBEDDED, "[00:01.00]embedded")
        downloader, _ = _downloader(tmp_lyrics_dir, KeyedNetwork({}), extra=[embedded])
        result = downloader.download_one(LibraryTrack("Song", "Artist"))
        assert not result.success
        assert embedded.calls == []

    def test_embedded_stripped_from_custom_priority(self, tmp_lyrics_dir):
        embedded = FakeProvider(ProviderKind.EMBEDDED, "[00:01.00]embedded")
        cache = LocalCacheProvider(tmp_lyrics_dir)
        resolver = LyricResolver([cache, embedded])
        downloader = BatchDownloader(
            resolver, cache, priority=[ProviderKind.EMBEDDED, ProviderKind.LOCAL]
        )
        downloader.download_one(LibraryTrack("Song", "Artist"))
        assert embedded.calls == []

    def test_persist_failure_is_a_failed_track(self, tmp_lyrics_dir):
        cache = MagicMock(spec=LocalCacheProvider)
        cache.store.side_effect = OSError("read-only filesystem")
        resolver = LyricResolver([KeyedNetwork({"Song": NET_LRC})], cache=cache)
        result = BatchDownloader(resolver, cache).download_one(LibraryTrack("Song", "Artist"))
        assert not result.success
        assert "read-only" in result.error

    def test_default_priority(self):
        assert BATCH_PRIORITY == (ProviderKind.LOCAL, ProviderKind.NETWORK)


class TestDownloadAll:
    def test_counts_successes(self, tmp_lyrics_dir, sample_tracks):
        known = {t.title: NET_LRC for t in sample_tracks[:3]}
        downloader, _ = _downloader(tmp_lyrics_dir, KeyedNetwork(known))
        assert downloader.download_all(sample_tracks) == 3
        assert len(list(tmp_lyrics_dir.glob("*.lrc"))) == 3

    def test_failures_do_not_abort(self, tmp_lyrics_dir, sample_tracks):
        network = KeyedNetwork(
            {t.title: NET_LRC for t in sample_tracks},
            broken={"Track One", "Track Four"},
        )
        downloader, _ = _downloader(tmp_lyrics_dir, network)

        count = downloader.download_all(sample_tracks)

        assert count == len(sample_tracks) - 2
        assert network.calls == [t.title for t in sample_tracks]

    def test_unexpected_exception_is_contained(self, tmp_lyrics_dir, sample_tracks):
        resolver = MagicMock(spec=LyricResolver)
        resolver.resolve_raw.side_effect = [RuntimeError("boom")] + [None] * 4
        downloader = BatchDownloader(resolver, LocalCacheProvider(tmp_lyrics_dir))
        assert downloader.download_all(sample_tracks) == 0
        assert downloader.last_results[0].error == "boom"

    def test_rerun_is_idempotent(self, tmp_lyrics_dir, sample_tracks):
        network = KeyedNetwork({t.title: NET_LRC for t in sample_tracks})
        downloader, _ = _downloader(tmp_lyrics_dir, network)

        first = downloader.download_all(sample_tracks)
        calls_after_first = len(network.calls)
        second = downloader.download_all(sample_tracks)

        assert first == second == len(sample_tracks)
        assert len(network.calls) == calls_after_first
        assert all(r.source is LyricSource.LOCAL_FILE for r in downloader.last_results)

    def test_results_and_progress(self, tmp_lyrics_dir, sample_tracks):
        downloader, _ = _downloader(tmp_lyrics_dir, KeyedNetwork({"Track Two": NET_LRC}))
        progress: list[tuple[int, int]] = []

        downloader.download_all(sample_tracks, on_progress=lambda d, t: progress.append((d, t)))

        assert progress == [(i, 5) for i in range(1, 6)]
        assert [r.success for r in downloader.last_results] == [False, True, False, False, False]

    def test_empty_batch(self, tmp_lyrics_dir):
        downloader, _ = _downloader(tmp_lyrics_dir, KeyedNetwork({}))
        assert downloader.download_all([]) == 0
        assert downloader.last_results == []
