"""Port interface for Discord voice operations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from discord_jukebox.domain.shared.types import DiscordSnowflake

StreamFinishedCallback = Callable[[Exception | None], Awaitable[None]]


@dataclass(eq=False)
class StreamHandle:
    """An opened, not yet playing, audio stream."""

    url: str
    stream_url: str
    source: Any = field(repr=False, default=None)

    def cleanup(self) -> None:
        """Release the underlying audio source if it was never played."""
        cleanup = getattr(self.source, "cleanup", None)
        if callable(cleanup):
            cleanup()


class VoiceAdapter(ABC):
    """Interface for the voice sink: connection, stream opening, and rendering."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake) -> bool:
        """Connect to a voice channel.

        Returns False when the handshake did not become ready in time; the
        caller may still proceed and audio may simply not be heard.
        """
        ...

    @abstractmethod
    async def ensure_connected(
        self, guild_id: DiscordSnowflake, channel_id: DiscordSnowflake
    ) -> bool:
        """Ensure the bot is in the given channel, connecting or moving as needed."""
        ...

    @abstractmethod
    async def disconnect(self, guild_id: DiscordSnowflake) -> bool:
        """Release the guild's voice connection."""
        ...

    @abstractmethod
    async def open_stream(self, url: str) -> StreamHandle:
        """Open an audio stream for a track URL.

        Raises:
            StreamOpenError: If no playable stream could be obtained.
        """
        ...

    @abstractmethod
    async def play(
        self,
        guild_id: DiscordSnowflake,
        stream: StreamHandle,
        *,
        on_finished: StreamFinishedCallback,
    ) -> bool:
        """Render ``stream`` and await ``on_finished`` once it ends for any reason."""
        ...

    @abstractmethod
    async def stop_current(self, guild_id: DiscordSnowflake) -> bool:
        """Force-stop the rendering stream. Returns True if something was stopped."""
        ...

    @abstractmethod
    async def pause(self, guild_id: DiscordSnowflake) -> bool:
        """Pause current playback."""
        ...

    @abstractmethod
    async def resume(self, guild_id: DiscordSnowflake) -> bool:
        """Resume paused playback."""
        ...

    @abstractmethod
    def is_connected(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    def is_rendering(self, guild_id: DiscordSnowflake) -> bool:
        ...

    @abstractmethod
    def is_paused(self, guild_id: DiscordSnowflake) -> bool:
        ...
