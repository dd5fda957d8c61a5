"""Multi-source lyric resolution with write-through to the local cache."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

import requests
from mutagen import MutagenError

from lyric_float.models import DEFAULT_PRIORITY, Lyric, ProviderKind, TrackKey
from lyric_float.services.lrc import parse_lrc
from lyric_float.services.providers import LocalCacheProvider, LyricProvider

logger = logging.getLogger(__name__)

# Errors a provider may raise that mean "this source has nothing for us".
_PROVIDER_ERRORS = (OSError, ValueError, MutagenError, requests.RequestException)


class LyricResolver:
    """Walks providers in priority order and returns the first lyric found.

    Holds no per-track state and takes no locks: callers must not resolve
    the same track twice concurrently (see :class:`LyricSession`).
    """

    def __init__(
        self,
        providers: Mapping[ProviderKind, LyricProvider] | Iterable[LyricProvider],
        cache: LocalCacheProvider | None = None,
    ) -> None:
        if isinstance(providers, Mapping):
            self._providers = dict(providers)
        else:
            self._providers = {p.kind: p for p in providers}
        if cache is None:
            local = self._providers.get(ProviderKind.LOCAL)
            if isinstance(local, LocalCacheProvider):
                cache = local
        self._cache = cache

    @property
    def cache(self) -> LocalCacheProvider | None:
        return self._cache

    def provider(self, kind: ProviderKind) -> LyricProvider | None:
        return self._providers.get(kind)

    def resolve_raw(
        self,
        track: TrackKey,
        priority: Iterable[ProviderKind] = DEFAULT_PRIORITY,
    ) -> tuple[ProviderKind, str] | None:
        """Return ``(kind, document)`` from the first provider that has one.

        Providers after the first hit are never called. Nothing is written.
        """
        for kind in priority:
            provider = self._providers.get(kind)
            if provider is None:
                logger.debug("No %s provider configured, skipping", kind)
                continue
            try:
                document = provider.fetch(track)
            except _PROVIDER_ERRORS as exc:
                logger.warning("%s lookup failed for %s: %s", kind, track, exc)
                logger.debug("Provider traceback", exc_info=True)
                continue
            if document is None:
                logger.debug("%s: no lyrics for %s", kind, track)
                continue
            logger.debug("%s: found lyrics for %s", kind, track)
            return kind, document
        return None

    def resolve(
        self,
        track: TrackKey,
        priority: Iterable[ProviderKind] = DEFAULT_PRIORITY,
    ) -> Lyric | None:
        """Resolve *track* to a parsed lyric, or None if no source has one.

        A document found on the network is also written to the local cache
        so later lookups work offline. A failed write is logged only.
        """
        hit = self.resolve_raw(track, priority)
        if hit is None:
            logger.info("No lyrics available for %s", track)
            return None

        kind, document = hit
        if kind is ProviderKind.NETWORK:
            self._persist(track, document)
        return parse_lrc(document, track.title, track.artist, source=kind.source)

    def _persist(self, track: TrackKey, document: str) -> None:
        if self._cache is None:
            logger.debug("No lyric cache configured; not persisting %s", track)
            return
        try:
            self._cache.store(track, document)
        except OSError as exc:
            logger.warning("Could not persist lyrics for %s: %s", track, exc)
