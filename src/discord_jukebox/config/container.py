"""Dependency Injection Container

Builds the object graph lazily: settings, then the session store and the
providers, then the resolver, the voice adapter and the playback service.
Each component is created on first access and cached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.voice_adapter import VoiceAdapter
    from ..application.services.playback_service import PlaybackApplicationService
    from ..application.services.resolver_service import TrackResolverService
    from ..domain.music.repository import SessionStore
    from ..domain.music.services import QueueSelectionPolicy
    from ..infrastructure.audio.spotify_provider import SpotifyAggregatorProvider
    from ..infrastructure.audio.ytdlp_provider import YtDlpSourceProvider
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    # Persistence
    _session_store: SessionStore | None = None

    # Infrastructure adapters
    _source_provider: YtDlpSourceProvider | None = None
    _aggregator_provider: SpotifyAggregatorProvider | None = None
    _voice_adapter: VoiceAdapter | None = None

    # Domain services
    _selection_policy: QueueSelectionPolicy | None = None

    # Application services
    _track_resolver: TrackResolverService | None = None
    _playback_service: PlaybackApplicationService | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        """Get the Discord bot instance."""
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Persistence ===

    @property
    def session_store(self) -> SessionStore:
        if self._session_store is None:
            from ..infrastructure.persistence.session_store import InMemorySessionStore

            self._session_store = InMemorySessionStore()
        return self._session_store

    # === Infrastructure Adapters ===

    @property
    def source_provider(self) -> YtDlpSourceProvider:
        if self._source_provider is None:
            from ..infrastructure.audio.ytdlp_provider import YtDlpSourceProvider

            self._source_provider = YtDlpSourceProvider(self.settings.audio)
        return self._source_provider

    @property
    def aggregator_provider(self) -> SpotifyAggregatorProvider:
        if self._aggregator_provider is None:
            from ..infrastructure.audio.spotify_provider import SpotifyAggregatorProvider

            self._aggregator_provider = SpotifyAggregatorProvider(self.settings.spotify)
        return self._aggregator_provider

    @property
    def voice_adapter(self) -> VoiceAdapter:
        """Get the voice adapter. Requires the bot to be set."""
        if self._voice_adapter is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

            self._voice_adapter = DiscordVoiceAdapter(
                self.bot,
                self.settings.audio,
                stream_locator=self.source_provider.stream_url,
            )
        return self._voice_adapter

    # === Domain Services ===

    @property
    def selection_policy(self) -> QueueSelectionPolicy:
        if self._selection_policy is None:
            from ..domain.music.services import QueueSelectionPolicy

            self._selection_policy = QueueSelectionPolicy()
        return self._selection_policy

    # === Application Services ===

    @property
    def track_resolver(self) -> TrackResolverService:
        if self._track_resolver is None:
            from ..application.services.resolver_service import TrackResolverService

            self._track_resolver = TrackResolverService(
                source_provider=self.source_provider,
                aggregator_provider=self.aggregator_provider,
                candidate_limit=self.settings.controls.candidate_limit,
            )
        return self._track_resolver

    @property
    def playback_service(self) -> PlaybackApplicationService:
        if self._playback_service is None:
            from ..application.services.playback_service import PlaybackApplicationService

            self._playback_service = PlaybackApplicationService(
                session_store=self.session_store,
                voice_adapter=self.voice_adapter,
                selection_policy=self.selection_policy,
            )
        return self._playback_service

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Drop every live session; voice clients are closed by the bot."""
        if self._session_store is not None:
            cleared = self._session_store.count()
            self._session_store.clear()
            logger.info(LogTemplates.SESSIONS_DROPPED, cleared)


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
