"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from discord_jukebox.application.interfaces.track_source import (
    AggregatorProvider,
    AggregatorTrack,
    RawHit,
    SourceHint,
    TrackSourceProvider,
)
from discord_jukebox.application.interfaces.voice_adapter import StreamHandle, VoiceAdapter

__all__ = [
    "AggregatorProvider",
    "AggregatorTrack",
    "RawHit",
    "SourceHint",
    "StreamHandle",
    "TrackSourceProvider",
    "VoiceAdapter",
]
