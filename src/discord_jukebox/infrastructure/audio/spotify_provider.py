"""AggregatorProvider implementation backed by the Spotify Web API via spotipy."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Final

import spotipy
from spotipy.oauth2 import SpotifyClientCredentials

from discord_jukebox.application.interfaces.track_source import (
    AggregatorProvider,
    AggregatorTrack,
)
from discord_jukebox.config.settings import SpotifySettings
from discord_jukebox.domain.music.value_objects import SourceLabel
from discord_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

SPOTIFY_LINK_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"(?:https?://open\.spotify\.com/(?:intl-[a-z-]+/)?|spotify:)"
    r"(?P<kind>track|album|playlist)[/:](?P<id>[A-Za-z0-9]+)"
)


def parse_spotify_link(query: str) -> tuple[str, str] | None:
    """Return ``(kind, id)`` for a Spotify track, album or playlist link."""
    match = SPOTIFY_LINK_PATTERN.search(query)
    if match is None:
        return None
    return match.group("kind"), match.group("id")


def _to_aggregator_track(data: dict[str, Any] | None) -> AggregatorTrack | None:
    if not data or not data.get("name"):
        return None
    artists = [a["name"] for a in data.get("artists") or [] if a and a.get("name")]
    return AggregatorTrack(name=data["name"], artists=artists)


class SpotifyAggregatorProvider(AggregatorProvider):
    """Looks up Spotify metadata; playback always goes through a YouTube search.

    Albums and playlists resolve to their first track. Without credentials
    every lookup returns None.
    """

    def __init__(
        self,
        settings: SpotifySettings | None = None,
        *,
        client: spotipy.Spotify | None = None,
    ) -> None:
        self._settings = settings or SpotifySettings()
        self._client = client

        if self._client is None and self._settings.enabled:
            auth_manager = SpotifyClientCredentials(
                client_id=self._settings.client_id.get_secret_value(),
                client_secret=self._settings.client_secret.get_secret_value(),
            )
            self._client = spotipy.Spotify(auth_manager=auth_manager)
            logger.info(LogTemplates.SPOTIFY_ENABLED)
        elif self._client is None:
            logger.warning(LogTemplates.SPOTIFY_DISABLED)

    @property
    def is_enabled(self) -> bool:
        return self._client is not None

    @property
    def source_label(self) -> str:
        return SourceLabel.SPOTIFY_VIA_YOUTUBE

    def matches(self, query: str) -> bool:
        return parse_spotify_link(query) is not None

    def _lookup_sync(self, kind: str, spotify_id: str) -> AggregatorTrack | None:
        assert self._client is not None

        if kind == "track":
            return _to_aggregator_track(self._client.track(spotify_id))

        if kind == "album":
            page = self._client.album_tracks(spotify_id, limit=1)
            items = (page or {}).get("items") or []
            first = items[0] if items else None
        else:
            page = self._client.playlist_items(spotify_id, limit=1, additional_types=("track",))
            items = (page or {}).get("items") or []
            first = items[0].get("track") if items and items[0] else None

        if first is None:
            logger.info(LogTemplates.SPOTIFY_EMPTY_COLLECTION, kind, spotify_id)
        return _to_aggregator_track(first)

    async def lookup(self, query: str) -> AggregatorTrack | None:
        parsed = parse_spotify_link(query)
        if parsed is None or self._client is None:
            return None

        kind, spotify_id = parsed
        try:
            return await asyncio.to_thread(self._lookup_sync, kind, spotify_id)
        except spotipy.SpotifyException as exc:
            logger.warning(LogTemplates.SPOTIFY_LOOKUP_FAILED, query, exc)
            return None
