"""Immutable value objects for the music bounded context."""

from __future__ import annotations

from enum import Enum


class PlaybackState(Enum):
    """Playback state of a guild session.

    State transitions:
    - IDLE -> PLAYING (a track was popped and handed to the voice sink)
    - PLAYING -> IDLE (track finished, was skipped, or its stream failed)
    """

    IDLE = "idle"
    PLAYING = "playing"

    @property
    def is_playing(self) -> bool:
        return self == PlaybackState.PLAYING


class SourceLabel:
    """Provenance labels attached to resolved tracks."""

    YOUTUBE = "YouTube"
    SOUNDCLOUD = "SoundCloud"
    SPOTIFY_VIA_YOUTUBE = "Spotify → YouTube"
    DIRECT = "Direct"


DIRECT_STREAM_TITLE = "Audio"
UNKNOWN_TITLE = "Unknown"
