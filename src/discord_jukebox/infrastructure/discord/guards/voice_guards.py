"""Free guard functions shared by cogs and views.

Each guard replies to the user itself when the check fails, so callers only
need to return early.
"""

from __future__ import annotations

import discord

from discord_jukebox.domain.shared.messages import DiscordUIMessages
from discord_jukebox.utils.reply import try_deliver


async def send_ephemeral(interaction: discord.Interaction, message: str) -> None:
    """Send an ephemeral message whether or not the interaction was already answered."""
    if interaction.response.is_done():
        await try_deliver("followup", interaction.followup.send(message, ephemeral=True))
    else:
        await try_deliver(
            "send_message", interaction.response.send_message(message, ephemeral=True)
        )


async def get_member(interaction: discord.Interaction) -> discord.Member | None:
    """Return the invoking guild member, or None after telling the user why not."""
    if not interaction.guild:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_SERVER_ONLY)
        return None

    user = interaction.user
    if not isinstance(user, discord.Member):
        await send_ephemeral(interaction, DiscordUIMessages.STATE_VERIFY_VOICE_FAILED)
        return None

    return user


async def get_voice_channel_id(interaction: discord.Interaction) -> int | None:
    """Return the id of the caller's voice channel, or None if they are not in one."""
    member = await get_member(interaction)
    if member is None:
        return None

    if not member.voice or not member.voice.channel:
        await send_ephemeral(interaction, DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE)
        return None

    return member.voice.channel.id
