"""Discord voice adapter implementing VoiceAdapter for connection and playback."""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import discord

from discord_jukebox.application.interfaces.voice_adapter import (
    StreamFinishedCallback,
    StreamHandle,
    VoiceAdapter,
)
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import StreamOpenError, VoiceConnectDegraded
from discord_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

StreamLocator = Callable[[str], Awaitable[str]]


@dataclass
class _HeldStream:
    """A stream waiting for a late voice handshake."""

    source: Any
    after: Callable[[Exception | None], None]


class DiscordVoiceAdapter(VoiceAdapter):
    def __init__(
        self,
        bot: discord.Client,
        settings: AudioSettings | None = None,
        *,
        stream_locator: StreamLocator,
    ) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()
        self._volume = self._settings.default_volume
        self._ffmpeg_options = self._settings.ffmpeg_options
        self._connect_timeout = self._settings.connect_timeout_s
        self._stream_locator = stream_locator

        self._handshakes: dict[int, asyncio.Future[Any]] = {}
        self._held: dict[int, _HeldStream] = {}

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    def _get_voice_channel(
        self, guild_id: int, channel_id: int
    ) -> discord.VoiceChannel | discord.StageChannel | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            return None

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            return None
        return channel

    # === Connection ===

    async def _bounded(
        self, guild_id: int, channel_id: int, handshake: Awaitable[object]
    ) -> None:
        """Wait up to the connect timeout for ``handshake``.

        A handshake that overruns is not cancelled: discord.py keeps
        retrying it in the background, and any stream played meanwhile is
        held until it finishes.
        """
        task = asyncio.ensure_future(handshake)
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self._connect_timeout)
        except TimeoutError as exc:
            if not task.done():
                self._handshakes[guild_id] = task
                task.add_done_callback(
                    functools.partial(self._on_late_handshake, guild_id, channel_id)
                )
            raise VoiceConnectDegraded(channel_id, self._connect_timeout) from exc

    def _on_late_handshake(self, guild_id: int, channel_id: int, task: asyncio.Future) -> None:
        if self._handshakes.get(guild_id) is task:
            del self._handshakes[guild_id]

        held = self._held.pop(guild_id, None)
        error = None if task.cancelled() else task.exception()
        if task.cancelled() or error is not None:
            logger.warning(LogTemplates.VOICE_HANDSHAKE_LATE_FAILED, channel_id, guild_id, error)
            if held is not None:
                held.source.cleanup()
                held.after(error)
            return

        logger.info(LogTemplates.VOICE_HANDSHAKE_LATE_READY, channel_id, guild_id)
        if held is not None and not self._start(guild_id, held):
            held.source.cleanup()
            held.after(None)

    def has_pending_handshake(self, guild_id: int) -> bool:
        return guild_id in self._handshakes

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        channel = self._get_voice_channel(guild_id, channel_id)
        if channel is None:
            return False

        try:
            await self._bounded(guild_id, channel_id, channel.connect(self_deaf=True))
            logger.info(LogTemplates.VOICE_CONNECTED, channel.name, channel.guild.name)
            return True
        except VoiceConnectDegraded as exc:
            logger.warning(LogTemplates.VOICE_CONNECT_DEGRADED, guild_id, exc)
            return False
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

    async def move_to(self, guild_id: int, channel_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return await self.connect(guild_id, channel_id)

        channel = self._get_voice_channel(guild_id, channel_id)
        if channel is None:
            return False

        try:
            await self._bounded(guild_id, channel_id, vc.move_to(channel))
            logger.info(LogTemplates.VOICE_MOVED, channel.name)
            return True
        except VoiceConnectDegraded as exc:
            logger.warning(LogTemplates.VOICE_CONNECT_DEGRADED, guild_id, exc)
            return False

    async def ensure_connected(self, guild_id: int, channel_id: int) -> bool:
        """Connect if not connected, move if in a different channel."""
        if self.has_pending_handshake(guild_id):
            logger.debug(LogTemplates.VOICE_HANDSHAKE_PENDING, guild_id)
            return False

        vc = self._get_voice_client(guild_id)

        if vc and not vc.is_connected():
            logger.warning(LogTemplates.VOICE_STALE_CLEANUP, guild_id)
            await self.disconnect(guild_id)
            vc = None

        if vc and vc.channel:
            if vc.channel.id == channel_id:
                return True
            return await self.move_to(guild_id, channel_id)

        return await self.connect(guild_id, channel_id)

    async def disconnect(self, guild_id: int) -> bool:
        handshake = self._handshakes.pop(guild_id, None)
        if handshake is not None:
            handshake.cancel()

        vc = self._get_voice_client(guild_id)
        if not vc:
            return True

        try:
            await vc.disconnect(force=True)
            logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
            return True
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

    # === Streams ===

    async def open_stream(self, url: str) -> StreamHandle:
        stream_url = await self._stream_locator(url)

        try:
            source = discord.FFmpegPCMAudio(
                stream_url,
                before_options=self._ffmpeg_options.get("before_options", ""),
                options=self._ffmpeg_options.get("options", ""),
            )
        except discord.ClientException as exc:
            raise StreamOpenError(
                url, ErrorMessages.FFMPEG_SPAWN_FAILED.format(url=url, error=exc)
            ) from exc

        logger.debug(LogTemplates.STREAM_OPENED, url)
        return StreamHandle(
            url=url,
            stream_url=stream_url,
            source=discord.PCMVolumeTransformer(source, volume=self._volume),
        )

    async def play(
        self,
        guild_id: int,
        stream: StreamHandle,
        *,
        on_finished: StreamFinishedCallback,
    ) -> bool:
        held = _HeldStream(source=stream.source, after=self._after_callback(guild_id, on_finished))

        if self.has_pending_handshake(guild_id):
            vc = self._get_voice_client(guild_id)
            if vc is None or not vc.is_connected():
                logger.warning(LogTemplates.STREAM_HELD, guild_id, stream.url)
                self._held[guild_id] = held
                return True

        return self._start(guild_id, held)

    def _after_callback(
        self, guild_id: int, on_finished: StreamFinishedCallback
    ) -> Callable[[Exception | None], None]:
        loop = self._bot.loop

        def after_callback(error: Exception | None = None) -> None:
            logger.debug(LogTemplates.STREAM_ENDED, guild_id, error)
            asyncio.run_coroutine_threadsafe(
                self._handle_stream_end(guild_id, on_finished, error),
                loop,
            )

        return after_callback

    def _start(self, guild_id: int, held: _HeldStream) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            return False

        try:
            vc.play(held.source, after=held.after)
        except discord.DiscordException as e:
            # ClientException, or OpusNotLoaded when libopus is missing
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False
        return True

    async def _handle_stream_end(
        self,
        guild_id: int,
        on_finished: StreamFinishedCallback,
        error: Exception | None,
    ) -> None:
        """Runs on the event loop after discord.py's audio thread reports the end of a stream."""
        try:
            await on_finished(error)
        except Exception as e:
            logger.exception(LogTemplates.STREAM_CALLBACK_ERROR, guild_id, e)

    # === Transport ===

    async def stop_current(self, guild_id: int) -> bool:
        held = self._held.pop(guild_id, None)
        if held is not None:
            held.source.cleanup()
            held.after(None)
            logger.info(LogTemplates.PLAYBACK_STOPPED, guild_id)
            return True

        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_playing() or vc.is_paused():
            vc.stop()
            logger.info(LogTemplates.PLAYBACK_STOPPED, guild_id)
            return True
        return False

    async def pause(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_playing():
            vc.pause()
            logger.info(LogTemplates.PLAYBACK_PAUSED, guild_id)
            return True
        return False

    async def resume(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_paused():
            vc.resume()
            logger.info(LogTemplates.PLAYBACK_RESUMED, guild_id)
            return True
        return False

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    def is_rendering(self, guild_id: int) -> bool:
        if guild_id in self._held:
            return True
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_playing()

    def is_paused(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_paused()
