"""
Unit Tests for DiscordVoiceAdapter

Tests for:
- Bounded voice handshakes (ready, degraded, forbidden)
- ensure_connected reuse, move and stale-client cleanup
- Opening FFmpeg streams and mapping spawn failures
- Rendering and the completion callback bridge from the audio thread
- Late voice handshakes and streams held until they finish
- Transport controls (stop, pause, resume)
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import discord
import pytest
from discord.opus import OpusNotLoaded

from discord_jukebox.application.interfaces.voice_adapter import StreamHandle
from discord_jukebox.config.settings import AudioSettings
from discord_jukebox.domain.shared.exceptions import StreamOpenError
from discord_jukebox.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

GUILD_ID = 123
CHANNEL_ID = 456
OTHER_CHANNEL_ID = 789

MODULE = "discord_jukebox.infrastructure.discord.adapters.voice_adapter"


@pytest.fixture
def mock_bot():
    loop = asyncio.new_event_loop()
    bot = MagicMock()
    bot.loop = loop
    yield bot
    loop.close()


@pytest.fixture
def locator():
    return AsyncMock(return_value="https://media.example/stream.webm")


@pytest.fixture
def adapter(mock_bot, locator):
    return DiscordVoiceAdapter(mock_bot, AudioSettings(), stream_locator=locator)


def make_channel(channel_id=CHANNEL_ID):
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = channel_id
    channel.name = "Music"
    channel.guild = MagicMock()
    channel.guild.name = "Test Guild"
    channel.connect = AsyncMock()
    return channel


def make_voice_client(channel_id=CHANNEL_ID, *, connected=True, playing=False, paused=False):
    vc = MagicMock(spec=discord.VoiceClient)
    vc.channel = MagicMock()
    vc.channel.id = channel_id
    vc.is_connected.return_value = connected
    vc.is_playing.return_value = playing
    vc.is_paused.return_value = paused
    vc.disconnect = AsyncMock()
    vc.move_to = AsyncMock()
    return vc


def attach_guild(mock_bot, *, voice_client=None, channel=None):
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.voice_client = voice_client
    guild.get_channel.return_value = channel
    mock_bot.get_guild.return_value = guild
    return guild


async def settle(condition, attempts=20):
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0.01)


# =============================================================================
# Connection
# =============================================================================


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_success_is_self_deafened(self, adapter, mock_bot):
        channel = make_channel()
        attach_guild(mock_bot, channel=channel)

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is True
        channel.connect.assert_awaited_once_with(self_deaf=True)

    @pytest.mark.asyncio
    async def test_handshake_timeout_is_degraded(self, adapter, mock_bot):
        """A handshake that never becomes ready reports False instead of raising."""
        channel = make_channel()
        channel.connect = AsyncMock(side_effect=TimeoutError())
        attach_guild(mock_bot, channel=channel)

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

    @pytest.mark.asyncio
    async def test_slow_handshake_is_bounded(self, mock_bot, locator):
        adapter = DiscordVoiceAdapter(
            mock_bot, AudioSettings(connect_timeout_s=0.05), stream_locator=locator
        )

        async def never_ready(**kwargs):
            await asyncio.sleep(5)

        channel = make_channel()
        channel.connect = AsyncMock(side_effect=never_ready)
        attach_guild(mock_bot, channel=channel)

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

        handshake = adapter._handshakes[GUILD_ID]
        await adapter.disconnect(GUILD_ID)
        await settle(handshake.done)
        assert handshake.cancelled()

    @pytest.mark.asyncio
    async def test_forbidden(self, adapter, mock_bot):
        channel = make_channel()
        channel.connect = AsyncMock(
            side_effect=discord.Forbidden(MagicMock(status=403), "Missing Permissions")
        )
        attach_guild(mock_bot, channel=channel)

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

    @pytest.mark.asyncio
    async def test_client_exception(self, adapter, mock_bot):
        channel = make_channel()
        channel.connect = AsyncMock(side_effect=discord.ClientException("Already connected"))
        attach_guild(mock_bot, channel=channel)

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

    @pytest.mark.asyncio
    async def test_unknown_guild(self, adapter, mock_bot):
        mock_bot.get_guild.return_value = None

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

    @pytest.mark.asyncio
    async def test_text_channel_rejected(self, adapter, mock_bot):
        attach_guild(mock_bot, channel=MagicMock(spec=discord.TextChannel))

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False


class TestEnsureConnected:
    @pytest.mark.asyncio
    async def test_already_in_channel(self, adapter, mock_bot):
        vc = make_voice_client()
        channel = make_channel()
        attach_guild(mock_bot, voice_client=vc, channel=channel)

        assert await adapter.ensure_connected(GUILD_ID, CHANNEL_ID) is True
        channel.connect.assert_not_called()
        vc.move_to.assert_not_called()

    @pytest.mark.asyncio
    async def test_moves_to_other_channel(self, adapter, mock_bot):
        vc = make_voice_client(CHANNEL_ID)
        target = make_channel(OTHER_CHANNEL_ID)
        attach_guild(mock_bot, voice_client=vc, channel=target)

        assert await adapter.ensure_connected(GUILD_ID, OTHER_CHANNEL_ID) is True
        vc.move_to.assert_awaited_once_with(target)

    @pytest.mark.asyncio
    async def test_stale_client_is_replaced(self, adapter, mock_bot):
        vc = make_voice_client(connected=False)
        channel = make_channel()
        guild = attach_guild(mock_bot, voice_client=vc, channel=channel)

        async def drop_client(*, force):
            guild.voice_client = None

        vc.disconnect = AsyncMock(side_effect=drop_client)

        assert await adapter.ensure_connected(GUILD_ID, CHANNEL_ID) is True
        vc.disconnect.assert_awaited_once_with(force=True)
        channel.connect.assert_awaited_once_with(self_deaf=True)

    @pytest.mark.asyncio
    async def test_disconnect_without_client(self, adapter, mock_bot):
        attach_guild(mock_bot)

        assert await adapter.disconnect(GUILD_ID) is True


# =============================================================================
# Streams
# =============================================================================


class TestOpenStream:
    @pytest.mark.asyncio
    async def test_open_stream_wraps_ffmpeg_source(self, adapter, locator):
        with (
            patch(f"{MODULE}.discord.FFmpegPCMAudio") as ffmpeg,
            patch(f"{MODULE}.discord.PCMVolumeTransformer") as transformer,
        ):
            handle = await adapter.open_stream("https://www.youtube.com/watch?v=a")

        locator.assert_awaited_once_with("https://www.youtube.com/watch?v=a")
        ffmpeg.assert_called_once()
        assert ffmpeg.call_args.args[0] == "https://media.example/stream.webm"
        assert "-reconnect 1" in ffmpeg.call_args.kwargs["before_options"]
        assert ffmpeg.call_args.kwargs["options"] == "-vn"
        transformer.assert_called_once_with(ffmpeg.return_value, volume=0.5)
        assert handle.url == "https://www.youtube.com/watch?v=a"
        assert handle.stream_url == "https://media.example/stream.webm"
        assert handle.source is transformer.return_value

    @pytest.mark.asyncio
    async def test_locator_failure_propagates(self, adapter, locator):
        locator.side_effect = StreamOpenError("https://x.example/a")

        with pytest.raises(StreamOpenError):
            await adapter.open_stream("https://x.example/a")

    @pytest.mark.asyncio
    async def test_ffmpeg_missing_is_stream_open_error(self, adapter):
        with patch(
            f"{MODULE}.discord.FFmpegPCMAudio",
            side_effect=discord.ClientException("ffmpeg was not found."),
        ):
            with pytest.raises(StreamOpenError, match="ffmpeg was not found"):
                await adapter.open_stream("https://x.example/a")


class TestPlay:
    @pytest.mark.asyncio
    async def test_play_without_voice_client(self, adapter, mock_bot):
        attach_guild(mock_bot)
        handle = StreamHandle(url="u", stream_url="s", source=MagicMock())

        assert await adapter.play(GUILD_ID, handle, on_finished=AsyncMock()) is False

    @pytest.mark.asyncio
    async def test_play_rejected_by_client(self, adapter, mock_bot):
        vc = make_voice_client()
        vc.play.side_effect = discord.ClientException("Already playing audio.")
        attach_guild(mock_bot, voice_client=vc)
        handle = StreamHandle(url="u", stream_url="s", source=MagicMock())

        assert await adapter.play(GUILD_ID, handle, on_finished=AsyncMock()) is False

    @pytest.mark.asyncio
    async def test_play_without_opus(self, adapter, mock_bot):
        vc = make_voice_client()
        vc.play.side_effect = OpusNotLoaded()
        attach_guild(mock_bot, voice_client=vc)
        handle = StreamHandle(url="u", stream_url="s", source=MagicMock())

        assert await adapter.play(GUILD_ID, handle, on_finished=AsyncMock()) is False

    @pytest.mark.asyncio
    async def test_after_callback_reaches_event_loop(self, adapter, mock_bot):
        """discord.py calls ``after`` from its audio thread; the callback must run on the loop."""
        mock_bot.loop = asyncio.get_running_loop()
        vc = make_voice_client()
        attach_guild(mock_bot, voice_client=vc)
        on_finished = AsyncMock()
        source = MagicMock()

        assert await adapter.play(
            GUILD_ID, StreamHandle(url="u", stream_url="s", source=source), on_finished=on_finished
        )
        assert vc.play.call_args.args[0] is source
        after = vc.play.call_args.kwargs["after"]

        error = RuntimeError("ffmpeg exited")
        await asyncio.to_thread(after, error)
        for _ in range(10):
            if on_finished.await_count:
                break
            await asyncio.sleep(0.01)

        on_finished.assert_awaited_once_with(error)

    @pytest.mark.asyncio
    async def test_callback_errors_are_contained(self, adapter):
        on_finished = AsyncMock(side_effect=RuntimeError("boom"))

        await adapter._handle_stream_end(GUILD_ID, on_finished, None)

        on_finished.assert_awaited_once_with(None)


# =============================================================================
# Late handshakes
# =============================================================================


@pytest.fixture
def slow_adapter(mock_bot, locator):
    return DiscordVoiceAdapter(
        mock_bot, AudioSettings(connect_timeout_s=0.05), stream_locator=locator
    )


def slow_channel(release, *, error=None):
    """A channel whose handshake finishes (or fails) once ``release`` is set."""

    async def handshake(**kwargs):
        await release.wait()
        if error is not None:
            raise error

    channel = make_channel()
    channel.connect = AsyncMock(side_effect=handshake)
    return channel


class TestLateHandshake:
    @pytest.mark.asyncio
    async def test_overrun_handshake_keeps_running(self, slow_adapter, mock_bot):
        release = asyncio.Event()
        attach_guild(mock_bot, channel=slow_channel(release))

        assert await slow_adapter.connect(GUILD_ID, CHANNEL_ID) is False
        assert slow_adapter.has_pending_handshake(GUILD_ID)
        handshake = slow_adapter._handshakes[GUILD_ID]
        assert not handshake.done()

        release.set()
        await settle(lambda: not slow_adapter.has_pending_handshake(GUILD_ID))

        assert handshake.done() and not handshake.cancelled()
        assert not slow_adapter.has_pending_handshake(GUILD_ID)

    @pytest.mark.asyncio
    async def test_held_stream_starts_when_handshake_finishes(self, slow_adapter, mock_bot):
        release = asyncio.Event()
        guild = attach_guild(mock_bot, channel=slow_channel(release))
        await slow_adapter.connect(GUILD_ID, CHANNEL_ID)

        source = MagicMock()
        handle = StreamHandle(url="u", stream_url="s", source=source)
        on_finished = AsyncMock()

        assert await slow_adapter.play(GUILD_ID, handle, on_finished=on_finished) is True
        assert slow_adapter.is_rendering(GUILD_ID) is True

        vc = make_voice_client()
        guild.voice_client = vc
        release.set()
        await settle(lambda: vc.play.called)

        vc.play.assert_called_once()
        assert vc.play.call_args.args[0] is source
        on_finished.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_handshake_ends_held_stream(self, slow_adapter, mock_bot):
        mock_bot.loop = asyncio.get_running_loop()
        release = asyncio.Event()
        error = discord.ClientException("voice handshake failed")
        attach_guild(mock_bot, channel=slow_channel(release, error=error))
        await slow_adapter.connect(GUILD_ID, CHANNEL_ID)

        source = MagicMock()
        on_finished = AsyncMock()
        await slow_adapter.play(
            GUILD_ID, StreamHandle(url="u", stream_url="s", source=source), on_finished=on_finished
        )

        release.set()
        await settle(lambda: on_finished.await_count)

        source.cleanup.assert_called_once()
        on_finished.assert_awaited_once_with(error)
        assert slow_adapter.is_rendering(GUILD_ID) is False

    @pytest.mark.asyncio
    async def test_stop_releases_held_stream(self, slow_adapter, mock_bot):
        mock_bot.loop = asyncio.get_running_loop()
        release = asyncio.Event()
        attach_guild(mock_bot, channel=slow_channel(release))
        await slow_adapter.connect(GUILD_ID, CHANNEL_ID)

        source = MagicMock()
        on_finished = AsyncMock()
        await slow_adapter.play(
            GUILD_ID, StreamHandle(url="u", stream_url="s", source=source), on_finished=on_finished
        )

        assert await slow_adapter.stop_current(GUILD_ID) is True
        await settle(lambda: on_finished.await_count)

        source.cleanup.assert_called_once()
        on_finished.assert_awaited_once_with(None)

        handshake = slow_adapter._handshakes[GUILD_ID]
        await slow_adapter.disconnect(GUILD_ID)
        await settle(handshake.done)

    @pytest.mark.asyncio
    async def test_ensure_connected_waits_for_pending_handshake(self, slow_adapter, mock_bot):
        release = asyncio.Event()
        channel = slow_channel(release)
        guild = attach_guild(mock_bot, channel=channel)
        await slow_adapter.connect(GUILD_ID, CHANNEL_ID)

        # discord.py exposes the half-open client while it retries
        vc = make_voice_client(connected=False)
        guild.voice_client = vc

        assert await slow_adapter.ensure_connected(GUILD_ID, CHANNEL_ID) is False
        vc.disconnect.assert_not_awaited()
        channel.connect.assert_awaited_once()

        release.set()
        await settle(lambda: not slow_adapter.has_pending_handshake(GUILD_ID))


# =============================================================================
# Transport
# =============================================================================


class TestTransport:
    @pytest.mark.asyncio
    async def test_stop_current_when_playing(self, adapter, mock_bot):
        vc = make_voice_client(playing=True)
        attach_guild(mock_bot, voice_client=vc)

        assert await adapter.stop_current(GUILD_ID) is True
        vc.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_stop_current_when_paused(self, adapter, mock_bot):
        vc = make_voice_client(paused=True)
        attach_guild(mock_bot, voice_client=vc)

        assert await adapter.stop_current(GUILD_ID) is True

    @pytest.mark.asyncio
    async def test_stop_current_when_idle(self, adapter, mock_bot):
        vc = make_voice_client()
        attach_guild(mock_bot, voice_client=vc)

        assert await adapter.stop_current(GUILD_ID) is False
        vc.stop.assert_not_called()

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, adapter, mock_bot):
        vc = make_voice_client(playing=True)
        attach_guild(mock_bot, voice_client=vc)

        assert await adapter.pause(GUILD_ID) is True
        vc.pause.assert_called_once()
        assert await adapter.resume(GUILD_ID) is False

        vc.is_playing.return_value = False
        vc.is_paused.return_value = True
        assert await adapter.resume(GUILD_ID) is True
        vc.resume.assert_called_once()

    def test_state_queries(self, adapter, mock_bot):
        vc = make_voice_client(playing=True)
        attach_guild(mock_bot, voice_client=vc)

        assert adapter.is_connected(GUILD_ID) is True
        assert adapter.is_rendering(GUILD_ID) is True
        assert adapter.is_paused(GUILD_ID) is False

    def test_state_queries_without_client(self, adapter, mock_bot):
        mock_bot.get_guild.return_value = None

        assert adapter.is_connected(GUILD_ID) is False
        assert adapter.is_rendering(GUILD_ID) is False
