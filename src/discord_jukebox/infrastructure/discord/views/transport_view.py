"""Transport buttons attached to every now-playing message."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import discord

from discord_jukebox.domain.shared.messages import DiscordUIMessages
from discord_jukebox.infrastructure.discord.guards.voice_guards import send_ephemeral
from discord_jukebox.infrastructure.discord.views.base_view import BaseInteractiveView
from discord_jukebox.utils.reply import on_off, truncate, try_deliver

if TYPE_CHECKING:
    from ....application.services.playback_service import PlaybackApplicationService


async def skip_and_describe(playback_service: PlaybackApplicationService, guild_id: int) -> str:
    """Skip (or start, when idle with a queue) and return the reply for the user."""
    skipped = await playback_service.skip(guild_id)
    if skipped is not None:
        return DiscordUIMessages.ACTION_SKIPPED.format(title=truncate(skipped.title))

    current = (await playback_service.get_queue(guild_id, limit=0)).current_track
    if current is not None:
        return DiscordUIMessages.ACTION_STARTED.format(title=truncate(current.title))
    return DiscordUIMessages.STATE_NOTHING_PLAYING


class TransportControlsView(BaseInteractiveView):
    """Pause/resume, skip, stop, loop and shuffle for one guild.

    Any member of the guild may press any button. The controls stay live for
    the whole timeout window no matter how many tracks play meanwhile; expiry
    only greys them out.
    """

    def __init__(
        self,
        *,
        guild_id: int,
        playback_service: PlaybackApplicationService,
        loop_enabled: bool = False,
        shuffle_enabled: bool = False,
        timeout: float = 300.0,
        on_stop: Callable[[int], None] | None = None,
    ) -> None:
        super().__init__(timeout=timeout)
        self._guild_id = guild_id
        self._playback_service = playback_service
        self._on_stop = on_stop

        self.loop_button.label = DiscordUIMessages.BUTTON_LOOP.format(state=on_off(loop_enabled))
        self.shuffle_button.label = DiscordUIMessages.BUTTON_SHUFFLE.format(
            state=on_off(shuffle_enabled)
        )

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.guild_id != self._guild_id:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_WRONG_GUILD)
            return False
        return True

    @discord.ui.button(label=DiscordUIMessages.BUTTON_TOGGLE, style=discord.ButtonStyle.secondary)
    async def toggle_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[TransportControlsView]
    ) -> None:
        paused = await self._playback_service.pause_toggle(self._guild_id)
        if paused is None:
            message = DiscordUIMessages.STATE_NOTHING_PLAYING
        else:
            message = DiscordUIMessages.ACTION_PAUSED if paused else DiscordUIMessages.ACTION_RESUMED
        await send_ephemeral(interaction, message)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_SKIP, style=discord.ButtonStyle.primary)
    async def skip_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[TransportControlsView]
    ) -> None:
        # Starting the next track can take longer than the interaction deadline.
        await try_deliver("defer", interaction.response.defer(ephemeral=True, thinking=True))
        reply = await skip_and_describe(self._playback_service, self._guild_id)
        await send_ephemeral(interaction, reply)

    @discord.ui.button(label=DiscordUIMessages.BUTTON_STOP, style=discord.ButtonStyle.danger)
    async def stop_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[TransportControlsView]
    ) -> None:
        await self._playback_service.stop(self._guild_id)
        if self._on_stop is not None:
            self._on_stop(self._guild_id)
        self.stop()
        await try_deliver(
            "edit_message",
            interaction.response.edit_message(
                content=DiscordUIMessages.ACTION_STOPPED_BY.format(user=interaction.user.mention),
                embed=None,
                view=None,
            ),
        )

    @discord.ui.button(label="🔁", style=discord.ButtonStyle.secondary)
    async def loop_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[TransportControlsView]
    ) -> None:
        enabled = await self._playback_service.toggle_loop(self._guild_id)
        button.label = DiscordUIMessages.BUTTON_LOOP.format(state=on_off(enabled))
        await send_ephemeral(interaction, DiscordUIMessages.ACTION_LOOP.format(state=on_off(enabled)))
        await self._try_edit_message()

    @discord.ui.button(label="🔀", style=discord.ButtonStyle.secondary)
    async def shuffle_button(
        self, interaction: discord.Interaction, button: discord.ui.Button[TransportControlsView]
    ) -> None:
        enabled = await self._playback_service.toggle_shuffle(self._guild_id)
        button.label = DiscordUIMessages.BUTTON_SHUFFLE.format(state=on_off(enabled))
        await send_ephemeral(
            interaction, DiscordUIMessages.ACTION_SHUFFLE.format(state=on_off(enabled))
        )
        await self._try_edit_message()

    async def on_timeout(self) -> None:
        self._disable_items()
        await self._try_edit_message()
