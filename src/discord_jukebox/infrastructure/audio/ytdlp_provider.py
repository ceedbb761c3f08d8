"""TrackSourceProvider implementation using yt-dlp for YouTube, SoundCloud, and generic sites."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Final, cast

from pydantic import TypeAdapter, ValidationError
from yt_dlp import YoutubeDL

from discord_jukebox.application.interfaces.track_source import (
    RawHit,
    SourceHint,
    TrackSourceProvider,
)
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import StreamOpenError
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates
from discord_jukebox.infrastructure.audio.models import (
    GENERIC_EXTRACTOR,
    YtDlpOpts,
    YtDlpStreamInfo,
)

logger = logging.getLogger(__name__)

SEARCH_PREFIXES: Final[dict[SourceHint, str]] = {
    SourceHint.YOUTUBE: "ytsearch",
    SourceHint.SOUNDCLOUD: "scsearch",
}

SOUNDCLOUD_URL_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^https?://(?:www\.|m\.|on\.)?soundcloud\.com/", re.IGNORECASE
)

_HIT_ADAPTER: Final[TypeAdapter[RawHit]] = TypeAdapter(RawHit)


def _kind_for_extractor(extractor_key: str | None) -> str:
    key = (extractor_key or "").lower()
    if key.startswith("youtube"):
        return "youtube"
    if key.startswith("soundcloud"):
        return "soundcloud"
    return "generic"


def _entry_url(entry: dict[str, Any]) -> Any:
    return entry.get("webpage_url") or entry.get("url")


def to_hit(entry: dict[str, Any], kind: str) -> RawHit:
    """Build a tagged raw hit from a yt-dlp info dict or flat search entry."""
    data: dict[str, Any] = {
        "kind": kind,
        "url": _entry_url(entry),
        "title": entry.get("title"),
        "name": entry.get("track"),
        "fulltitle": entry.get("fulltitle"),
        "thumbnails": entry.get("thumbnails"),
        "thumbnail": entry.get("thumbnail"),
    }
    if kind == "generic":
        data["extractor"] = entry.get("extractor_key") or entry.get("extractor")
    return _HIT_ADAPTER.validate_python(data)


class YtDlpSourceProvider(TrackSourceProvider):
    """Runs blocking yt-dlp extraction in worker threads.

    Extraction errors propagate to the caller; the resolver treats them as
    "no results from this provider".
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._base_opts = YtDlpOpts(format=self._settings.ytdlp_format)

    def _get_opts(self, **overrides: Any) -> YtDlpOpts:
        if overrides:
            return self._base_opts.model_copy(update=overrides)
        return self._base_opts

    def _extract(self, target: str, opts: YtDlpOpts) -> dict[str, Any] | None:
        with YoutubeDL(params=cast(Any, opts.model_dump(exclude_none=True))) as ydl:
            data = ydl.extract_info(target, download=False)
        return dict(data) if isinstance(data, dict) else None

    # === Search ===

    def _search_sync(self, text: str, source: SourceHint, limit: int) -> list[RawHit]:
        query = f"{SEARCH_PREFIXES[source]}{limit}:{text}"
        try:
            data = self._extract(query, self._get_opts(extract_flat="in_playlist"))
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            raise

        if data is None:
            return []
        entries = data.get("entries") or []
        if not isinstance(entries, list):
            return []

        hits: list[RawHit] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                hits.append(to_hit(entry, source.value))
            except ValidationError:
                continue
            if len(hits) >= limit:
                break
        return hits

    async def search(self, text: str, source: SourceHint, limit: int) -> list[RawHit]:
        return await asyncio.to_thread(self._search_sync, text, source, limit)

    # === Lookups ===

    def _info_sync(self, url: str) -> dict[str, Any] | None:
        try:
            return self._extract(url, self._get_opts())
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            raise

    async def direct_lookup(self, url: str) -> RawHit | None:
        if not SOUNDCLOUD_URL_PATTERN.match(url):
            return None

        data = await asyncio.to_thread(self._info_sync, url)
        if data is None:
            return None
        return to_hit(data, "soundcloud")

    async def basic_info(self, url: str) -> RawHit | None:
        data = await asyncio.to_thread(self._info_sync, url)
        if data is None:
            return None

        extractor_key = data.get("extractor_key")
        if not extractor_key or extractor_key == GENERIC_EXTRACTOR:
            logger.debug(LogTemplates.YTDLP_GENERIC_EXTRACTOR, url)
            return None
        return to_hit(data, _kind_for_extractor(extractor_key))

    # === Streaming ===

    def _stream_url_sync(self, url: str) -> str:
        try:
            data = self._extract(url, self._get_opts())
        except Exception as exc:
            raise StreamOpenError(url, str(exc)) from exc

        info = YtDlpStreamInfo.model_validate(data or {})
        stream_url = info.stream_url
        if not stream_url:
            raise StreamOpenError(url, ErrorMessages.NO_STREAM_URL.format(url=url))
        return stream_url

    async def stream_url(self, url: str) -> str:
        """Resolve the media URL FFmpeg should read for a track page.

        Raises:
            StreamOpenError: If yt-dlp fails or yields no audio URL.
        """
        return await asyncio.to_thread(self._stream_url_sync, url)
