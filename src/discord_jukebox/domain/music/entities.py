"""Core domain entities for the music bounded context."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from discord_jukebox.domain.music.value_objects import PlaybackState
from discord_jukebox.domain.shared.types import (
    DiscordSnowflake,
    HttpUrlStr,
    NonEmptyStr,
    NonNegativeInt,
    TrackTitleStr,
    UtcDatetimeField,
    utcnow,
)


class Candidate(BaseModel):
    """An unresolved search hit offered in the disambiguation menu."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: TrackTitleStr
    url: HttpUrlStr
    thumbnail: str | None = None
    source_label: NonEmptyStr

    def to_track(self, requested_by: str) -> Track:
        return Track(
            title=self.title,
            url=self.url,
            thumbnail=self.thumbnail,
            requested_by=requested_by,
            source_label=self.source_label,
        )


class Track(BaseModel):
    """Immutable value object representing a playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    title: TrackTitleStr
    url: HttpUrlStr
    thumbnail: str | None = None
    requested_by: NonEmptyStr
    source_label: NonEmptyStr


class GuildSession(BaseModel):
    """Aggregate root holding the playback state of a single Discord guild.

    ``is_playing`` is true exactly when ``current_track`` is set, i.e. when
    one stream is bound to the guild's voice sink. ``generation`` increases
    every time a track starts so that completion notices from an earlier
    stream can be told apart from the current one.
    """

    model_config = ConfigDict(strict=True)

    guild_id: DiscordSnowflake
    session_id: NonEmptyStr = Field(default_factory=lambda: uuid4().hex)
    queue: list[Track] = Field(default_factory=list)
    current_track: Track | None = None
    state: PlaybackState = PlaybackState.IDLE
    loop_enabled: bool = False
    shuffle_enabled: bool = False
    voice_channel_id: DiscordSnowflake | None = None
    generation: NonNegativeInt = 0
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    last_activity: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def is_idle(self) -> bool:
        return self.state == PlaybackState.IDLE

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = utcnow()

    def enqueue(self, track: Track) -> int:
        """Append a track to the tail of the queue and return its zero-based position."""
        position = len(self.queue)
        self.queue.append(track)
        self.touch()
        return position

    def take_at(self, index: int) -> Track:
        """Remove and return the queued track at ``index``."""
        track = self.queue.pop(index)
        self.touch()
        return track

    def begin_track(self, track: Track) -> int:
        """Mark ``track`` as the one being rendered and return its generation."""
        self.current_track = track
        self.state = PlaybackState.PLAYING
        self.generation += 1
        self.touch()
        return self.generation

    def finish_track(self) -> Track | None:
        """Return to idle and hand back the track that was playing."""
        finished = self.current_track
        self.current_track = None
        self.state = PlaybackState.IDLE
        self.touch()
        return finished

    def is_current(self, generation: int) -> bool:
        """Whether ``generation`` identifies the stream currently bound to the sink."""
        return self.is_playing and self.generation == generation

    def clear_queue(self) -> int:
        """Clear all tracks from the queue and return the count removed."""
        count = len(self.queue)
        self.queue.clear()
        self.touch()
        return count

    def toggle_loop(self) -> bool:
        self.loop_enabled = not self.loop_enabled
        self.touch()
        return self.loop_enabled

    def toggle_shuffle(self) -> bool:
        self.shuffle_enabled = not self.shuffle_enabled
        self.touch()
        return self.shuffle_enabled
