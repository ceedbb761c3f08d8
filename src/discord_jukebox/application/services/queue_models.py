"""DTOs for the playback application service."""

from __future__ import annotations

from pydantic import BaseModel

from ...domain.music.entities import Track
from ...domain.shared.types import NonNegativeInt


class EnqueueResult(BaseModel):
    track: Track
    position: NonNegativeInt
    queue_length: NonNegativeInt
    should_start: bool = False


class QueueInfo(BaseModel):

    current_track: Track | None
    upcoming_tracks: list[Track]
    total_length: NonNegativeInt
    loop_enabled: bool = False
    shuffle_enabled: bool = False

    @property
    def hidden_count(self) -> int:
        return max(0, self.total_length - len(self.upcoming_tracks))

    @property
    def is_empty(self) -> bool:
        return self.current_track is None and self.total_length == 0
