"""Interaction guard functions for Discord cogs."""

from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    get_member,
    get_voice_channel_id,
    send_ephemeral,
)

__all__ = [
    "get_member",
    "get_voice_channel_id",
    "send_ephemeral",
]
