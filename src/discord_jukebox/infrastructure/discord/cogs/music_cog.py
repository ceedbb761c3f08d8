"""Slash-command music cog delegating to the resolver and playback services."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from discord_jukebox.domain.music.entities import Candidate, Track
from discord_jukebox.domain.shared.exceptions import ResolutionFailure
from discord_jukebox.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)
from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    get_member,
    get_voice_channel_id,
    send_ephemeral,
)
from discord_jukebox.infrastructure.discord.views.candidate_select_view import (
    CandidateSelectView,
)
from discord_jukebox.infrastructure.discord.views.transport_view import (
    TransportControlsView,
    skip_and_describe,
)
from discord_jukebox.utils.reply import truncate, try_deliver

if TYPE_CHECKING:
    from ....application.services.queue_models import QueueInfo
    from ....config.container import Container

logger = logging.getLogger(__name__)


class MusicCog(commands.Cog):
    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

        # guild id -> text channel that receives now-playing and skip notices
        self._announce_channels: dict[int, int] = {}

    async def cog_load(self) -> None:
        playback_service = self.container.playback_service
        playback_service.set_track_started_callback(self._on_track_started)
        playback_service.set_track_failed_callback(self._on_track_failed)

    async def cog_unload(self) -> None:
        self._announce_channels.clear()

    # === /play ===

    @app_commands.command(name="play", description="Play a song from a link or a search.")
    @app_commands.describe(query="Search text, or a YouTube, SoundCloud, Spotify or audio link")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        channel_id = await get_voice_channel_id(interaction)
        if channel_id is None:
            return

        assert interaction.guild is not None

        try:
            await self._play(interaction, interaction.guild.id, channel_id, query.strip())
        except ResolutionFailure as exc:
            await self._reply(interaction, exc.message)
        except Exception:
            logger.exception(LogTemplates.COMMAND_PLAY_FAILED, query)
            await self._reply(interaction, DiscordUIMessages.ERROR_INTERNAL)

    async def _play(
        self,
        interaction: discord.Interaction,
        guild_id: int,
        channel_id: int,
        query: str,
    ) -> None:
        resolver = self.container.track_resolver
        playback_service = self.container.playback_service
        requested_by = interaction.user.display_name

        # The voice handshake can outlast the 3-second interaction deadline.
        await try_deliver("defer", interaction.response.defer(thinking=True))
        await playback_service.connect(guild_id, channel_id)

        if resolver.is_link(query):
            await self._reply(interaction, DiscordUIMessages.PROGRESS_PROCESSING_LINK)
            track = await resolver.resolve(query, requested_by)
            if track is None:
                raise ResolutionFailure(query, DiscordUIMessages.ERROR_LINK_UNPLAYABLE)
        else:
            await self._reply(interaction, DiscordUIMessages.PROGRESS_SEARCHING)
            candidates = await resolver.search_top(
                query, self.container.settings.controls.candidate_limit
            )
            if not candidates:
                raise ResolutionFailure(
                    query, DiscordUIMessages.ERROR_NO_RESULTS.format(query=truncate(query))
                )

            if len(candidates) == 1:
                track = candidates[0].to_track(requested_by)
            else:
                picked = await self._pick_candidate(interaction, candidates, requested_by)
                if picked is None:
                    return
                track = picked
                # The menu may have been open long enough for the bot to be moved or dropped.
                await playback_service.connect(guild_id, channel_id)

        await self._enqueue(interaction, guild_id, channel_id, track)

    async def _pick_candidate(
        self,
        interaction: discord.Interaction,
        candidates: Sequence[Candidate],
        requested_by: str,
    ) -> Track | None:
        timeout = self.container.settings.controls.selection_timeout_s
        view = CandidateSelectView(
            requester_id=interaction.user.id,
            candidates=candidates,
            timeout=timeout,
        )

        message = await try_deliver(
            "edit_original_response",
            interaction.edit_original_response(
                content=None,
                embed=self._build_candidates_embed(candidates, timeout),
                view=view,
            ),
        )
        if message is not None:
            view.set_message(message)

        await view.wait()

        if view.selected is None:
            logger.info(LogTemplates.SELECTION_TIMED_OUT, interaction.user.id, interaction.guild_id)
            await self._reply(interaction, DiscordUIMessages.ERROR_SELECTION_TIMEOUT)
            return None

        await self._reply(
            interaction, DiscordUIMessages.ACTION_PICKED.format(title=truncate(view.selected.title))
        )
        return view.selected.to_track(requested_by)

    async def _enqueue(
        self,
        interaction: discord.Interaction,
        guild_id: int,
        channel_id: int,
        track: Track,
    ) -> None:
        playback_service = self.container.playback_service

        if interaction.channel_id is not None:
            self._announce_channels[guild_id] = interaction.channel_id

        result = await playback_service.enqueue(guild_id, track, voice_channel_id=channel_id)
        await try_deliver(
            "edit_original_response",
            interaction.edit_original_response(
                content=None,
                embed=self._build_added_embed(track, result.position + 1),
                view=None,
            ),
        )

        if result.should_start:
            await playback_service.advance(guild_id)

    # === Other commands ===

    @app_commands.command(name="skip", description="Skip the current track.")
    async def skip(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return

        assert interaction.guild is not None

        await try_deliver("defer", interaction.response.defer(ephemeral=True, thinking=True))
        reply = await skip_and_describe(self.container.playback_service, interaction.guild.id)
        await send_ephemeral(interaction, reply)

    @app_commands.command(name="queue", description="Show the upcoming tracks.")
    async def queue(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return

        assert interaction.guild is not None

        info = await self.container.playback_service.get_queue(
            interaction.guild.id, self.container.settings.controls.queue_display_limit
        )
        if info.is_empty:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_QUEUE_EMPTY)
            return

        await try_deliver(
            "send_message",
            interaction.response.send_message(embed=self._build_queue_embed(info)),
        )

    @app_commands.command(name="stop", description="Stop playback, clear the queue and leave.")
    async def stop(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return

        assert interaction.guild is not None

        await self.container.playback_service.stop(interaction.guild.id)
        self._forget_announce_channel(interaction.guild.id)
        await send_ephemeral(interaction, DiscordUIMessages.ACTION_STOPPED)

    @app_commands.command(name="pause", description="Pause or resume the current track.")
    async def pause(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return

        assert interaction.guild is not None

        paused = await self.container.playback_service.pause_toggle(interaction.guild.id)
        if paused is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING)
        elif paused:
            await send_ephemeral(interaction, DiscordUIMessages.ACTION_PAUSED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.ACTION_RESUMED)

    # === Playback notifications ===

    async def _on_track_started(self, guild_id: int, track: Track) -> None:
        channel = self._get_announce_channel(guild_id)
        if channel is None:
            return

        playback_service = self.container.playback_service
        info = await playback_service.get_queue(guild_id, limit=1)
        view = TransportControlsView(
            guild_id=guild_id,
            playback_service=playback_service,
            loop_enabled=info.loop_enabled,
            shuffle_enabled=info.shuffle_enabled,
            timeout=self.container.settings.controls.transport_timeout_s,
            on_stop=self._forget_announce_channel,
        )
        message = await try_deliver(
            "send", channel.send(embed=self._build_now_playing_embed(track, info), view=view)
        )
        if message is not None:
            view.set_message(message)

    async def _on_track_failed(self, guild_id: int, track: Track) -> None:
        channel = self._get_announce_channel(guild_id)
        if channel is None:
            return

        await try_deliver(
            "send",
            channel.send(DiscordUIMessages.ERROR_STREAM_SKIPPED.format(title=truncate(track.title))),
        )

    def _forget_announce_channel(self, guild_id: int) -> None:
        self._announce_channels.pop(guild_id, None)

    def _get_announce_channel(self, guild_id: int) -> discord.abc.Messageable | None:
        channel_id = self._announce_channels.get(guild_id)
        channel = self.bot.get_channel(channel_id) if channel_id is not None else None
        if not isinstance(channel, discord.abc.Messageable):
            logger.debug(LogTemplates.ANNOUNCE_CHANNEL_MISSING, guild_id)
            return None
        return channel

    # === Helpers ===

    async def _reply(self, interaction: discord.Interaction, content: str) -> None:
        """Show ``content`` as the command's response, replacing any embed or menu."""
        if interaction.response.is_done():
            await try_deliver(
                "edit_original_response",
                interaction.edit_original_response(content=content, embed=None, view=None),
            )
        else:
            await try_deliver(
                "send_message", interaction.response.send_message(content, ephemeral=True)
            )

    def _build_now_playing_embed(self, track: Track, info: QueueInfo) -> discord.Embed:
        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_NOW_PLAYING,
            description=f"[{truncate(track.title, 200)}]({track.url})",
            color=discord.Color.green(),
        )
        embed.add_field(
            name=DiscordUIMessages.EMBED_FIELD_REQUESTED_BY, value=track.requested_by, inline=True
        )
        embed.add_field(
            name=DiscordUIMessages.EMBED_FIELD_SOURCE, value=track.source_label, inline=True
        )
        if info.upcoming_tracks:
            embed.add_field(
                name=DiscordUIMessages.EMBED_FIELD_UP_NEXT,
                value=truncate(info.upcoming_tracks[0].title, 100),
                inline=False,
            )
        if track.thumbnail:
            embed.set_thumbnail(url=track.thumbnail)
        return embed

    def _build_added_embed(self, track: Track, position: int) -> discord.Embed:
        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_ADDED_TO_QUEUE,
            description=f"[{truncate(track.title, 200)}]({track.url})",
            color=discord.Color.blurple(),
        )
        embed.add_field(name=DiscordUIMessages.EMBED_FIELD_POSITION, value=str(position), inline=True)
        embed.add_field(
            name=DiscordUIMessages.EMBED_FIELD_SOURCE, value=track.source_label, inline=True
        )
        if track.thumbnail:
            embed.set_thumbnail(url=track.thumbnail)
        return embed

    def _build_queue_embed(self, info: QueueInfo) -> discord.Embed:
        lines: list[str] = []
        if info.current_track is not None:
            lines.append(
                f"{DiscordUIMessages.EMBED_NOW_PLAYING}: **{truncate(info.current_track.title, 80)}**"
            )
            lines.append("")

        for index, track in enumerate(info.upcoming_tracks, start=1):
            lines.append(
                DiscordUIMessages.EMBED_QUEUE_LINE.format(
                    index=index,
                    title=truncate(track.title, 80),
                    requested_by=track.requested_by,
                )
            )
        if info.hidden_count:
            lines.append(DiscordUIMessages.EMBED_QUEUE_MORE.format(count=info.hidden_count))

        return discord.Embed(
            title=DiscordUIMessages.EMBED_QUEUE.format(total=info.total_length),
            description="\n".join(lines) or DiscordUIMessages.STATE_QUEUE_EMPTY,
            color=discord.Color.blurple(),
        )

    def _build_candidates_embed(
        self, candidates: Sequence[Candidate], timeout: float
    ) -> discord.Embed:
        lines = [
            f"**{index}.** {truncate(c.title, 80)} · {c.source_label}"
            for index, c in enumerate(candidates, start=1)
        ]
        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_PICK_A_SONG,
            description="\n".join(lines),
            color=discord.Color.orange(),
        )
        embed.set_footer(text=DiscordUIMessages.EMBED_PICK_FOOTER.format(seconds=int(timeout)))
        return embed


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
