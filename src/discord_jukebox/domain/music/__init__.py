"""
Music Bounded Context

Domain logic for tracks, guild sessions, and queue selection.
"""

from discord_jukebox.domain.music.entities import Candidate, GuildSession, Track
from discord_jukebox.domain.music.repository import SessionStore
from discord_jukebox.domain.music.services import QueueSelectionPolicy
from discord_jukebox.domain.music.value_objects import PlaybackState, SourceLabel

__all__ = [
    # Entities
    "Track",
    "Candidate",
    "GuildSession",
    # Value Objects
    "PlaybackState",
    "SourceLabel",
    # Repository
    "SessionStore",
    # Services
    "QueueSelectionPolicy",
]
