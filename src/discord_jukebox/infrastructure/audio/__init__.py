"""Audio infrastructure - yt-dlp source provider and Spotify metadata lookup."""

from discord_jukebox.infrastructure.audio.models import (
    AudioFormatInfo,
    YtDlpOpts,
    YtDlpStreamInfo,
)
from discord_jukebox.infrastructure.audio.spotify_provider import SpotifyAggregatorProvider
from discord_jukebox.infrastructure.audio.ytdlp_provider import YtDlpSourceProvider

__all__ = [
    "AudioFormatInfo",
    "SpotifyAggregatorProvider",
    "YtDlpOpts",
    "YtDlpSourceProvider",
    "YtDlpStreamInfo",
]
