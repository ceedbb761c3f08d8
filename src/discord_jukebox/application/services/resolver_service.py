"""Track Resolver - collapses links and search text into a single playable Track."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Final, TypeVar
from urllib.parse import urlparse

from ...domain.music.entities import Candidate, Track
from ...domain.music.value_objects import (
    DIRECT_STREAM_TITLE,
    UNKNOWN_TITLE,
    SourceLabel,
)
from ...domain.shared.messages import LogTemplates
from ..interfaces.track_source import GenericHit, RawHit, SoundCloudHit, SourceHint

if TYPE_CHECKING:
    from ..interfaces.track_source import AggregatorProvider, TrackSourceProvider

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEARCH_ORDER: Final[tuple[SourceHint, ...]] = (SourceHint.YOUTUBE, SourceHint.SOUNDCLOUD)
MAX_TITLE_LENGTH: Final[int] = 500


def is_url(query: str) -> bool:
    """Whether ``query`` is a well-formed absolute http(s) URL."""
    parsed = urlparse(query.strip())
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def label_for(hit: RawHit) -> str:
    if isinstance(hit, SoundCloudHit):
        return SourceLabel.SOUNDCLOUD
    if isinstance(hit, GenericHit):
        return hit.extractor
    return SourceLabel.YOUTUBE


def normalize_hit(hit: RawHit, fallback_title: str) -> Candidate:
    """Turn a provider hit into the uniform candidate shape.

    Title priority is ``title``, ``name``, ``fulltitle``, then ``fallback_title``.
    The thumbnail is the last (largest) entry of the thumbnail list, then the
    single ``thumbnail`` field, then None.
    """
    title = hit.title or hit.name or hit.fulltitle or fallback_title
    thumbnail = hit.thumbnails[-1].url if hit.thumbnails else None
    return Candidate(
        title=title[:MAX_TITLE_LENGTH],
        url=hit.url,
        thumbnail=thumbnail or hit.thumbnail,
        source_label=label_for(hit),
    )


class TrackResolverService:
    """Resolves raw queries into Tracks and disambiguation candidates.

    Dispatch order, first match wins:

    1. aggregator links are looked up for title and artist, then re-searched
       on the primary provider;
    2. absolute URLs go through direct lookup, then a basic-info lookup, then
       fall back to an opaque direct stream;
    3. anything else is searched on the primary provider, then the secondary.

    Provider errors never escape: they are logged and count as zero results.
    """

    def __init__(
        self,
        *,
        source_provider: TrackSourceProvider,
        aggregator_provider: AggregatorProvider | None = None,
        candidate_limit: int = 5,
    ) -> None:
        self._provider = source_provider
        self._aggregator = aggregator_provider
        self._candidate_limit = candidate_limit

    def is_aggregator_link(self, query: str) -> bool:
        return self._aggregator is not None and self._aggregator.matches(query)

    def is_link(self, query: str) -> bool:
        return self.is_aggregator_link(query) or is_url(query)

    async def resolve(self, query: str, requested_by: str) -> Track | None:
        text = query.strip()
        if not text:
            return None

        if self.is_aggregator_link(text):
            return await self._resolve_aggregator(text, requested_by)

        if is_url(text):
            return await self._resolve_url(text, requested_by)

        hits = await self._search_with_fallback(text, 1)
        if not hits:
            logger.info(LogTemplates.RESOLVE_NO_RESULTS, text)
            return None
        return normalize_hit(hits[0], text).to_track(requested_by)

    async def search_top(self, query: str, limit: int | None = None) -> list[Candidate]:
        """Return up to ``limit`` candidates for free text; empty when nothing matched."""
        text = query.strip()
        if not text:
            return []

        hits = await self._search_with_fallback(text, limit or self._candidate_limit)
        if not hits:
            logger.info(LogTemplates.RESOLVE_NO_RESULTS, text)
        return [normalize_hit(hit, UNKNOWN_TITLE) for hit in hits]

    async def _resolve_aggregator(self, url: str, requested_by: str) -> Track | None:
        assert self._aggregator is not None
        logger.info(LogTemplates.RESOLVE_AGGREGATOR, url)

        meta = await self._guarded("lookup", url, self._aggregator.lookup(url), None)
        if meta is None:
            return None

        artist = meta.primary_artist
        search_text = f"{meta.name} {artist}" if artist else meta.name
        hits = await self._guarded(
            "search",
            search_text,
            self._provider.search(search_text, SourceHint.YOUTUBE, 1),
            [],
        )
        if not hits:
            logger.info(LogTemplates.RESOLVE_NO_RESULTS, search_text)
            return None

        hit = normalize_hit(hits[0], search_text)
        title = f"{meta.name} — {', '.join(meta.artists)}" if meta.artists else meta.name
        return Track(
            title=title[:MAX_TITLE_LENGTH],
            url=hit.url,
            thumbnail=hit.thumbnail,
            requested_by=requested_by,
            source_label=self._aggregator.source_label,
        )

    async def _resolve_url(self, url: str, requested_by: str) -> Track:
        logger.info(LogTemplates.RESOLVE_URL, url)

        hit = await self._guarded("direct_lookup", url, self._provider.direct_lookup(url), None)
        if hit is None:
            hit = await self._guarded("basic_info", url, self._provider.basic_info(url), None)

        if hit is None:
            logger.info(LogTemplates.RESOLVE_DIRECT_FALLBACK, url)
            return Track(
                title=DIRECT_STREAM_TITLE,
                url=url,
                thumbnail=None,
                requested_by=requested_by,
                source_label=SourceLabel.DIRECT,
            )
        return normalize_hit(hit, url).to_track(requested_by)

    async def _search_with_fallback(self, text: str, limit: int) -> list[RawHit]:
        logger.debug(LogTemplates.RESOLVE_SEARCH, text, limit)
        for source in SEARCH_ORDER:
            hits = await self._guarded(
                f"search:{source.value}", text, self._provider.search(text, source, limit), []
            )
            if hits:
                return list(hits[:limit])
        return []

    async def _guarded(self, operation: str, subject: str, call: Awaitable[T], default: T) -> T:
        try:
            return await call
        except Exception as exc:
            logger.warning(LogTemplates.PROVIDER_FAILED, operation, subject, exc)
            return default
