"""Infrastructure layer - external systems integration.

This layer contains implementations for:
- Persistence (in-memory session store)
- Discord (bot, cogs, views, voice adapter)
- Audio (yt-dlp, FFmpeg, Spotify metadata)
"""

from discord_jukebox.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter
from discord_jukebox.infrastructure.discord.bot import create_bot
from discord_jukebox.infrastructure.persistence.session_store import InMemorySessionStore

__all__ = [
    "create_bot",
    "DiscordVoiceAdapter",
    "InMemorySessionStore",
]
