"""Domain services for queue selection."""

from __future__ import annotations

import logging
import random

from discord_jukebox.domain.music.entities import GuildSession, Track
from discord_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class QueueSelectionPolicy:
    """Decides which queued track plays next.

    With shuffle enabled and more than one track queued, any position may be
    chosen with equal probability. Otherwise the head of the queue is taken.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def pick_index(self, session: GuildSession) -> int | None:
        length = session.queue_length
        if length == 0:
            return None
        if session.shuffle_enabled and length > 1:
            return self._rng.randrange(length)
        return 0

    def pick_next(self, session: GuildSession) -> Track | None:
        """Remove and return the next track, or None when the queue is empty."""
        index = self.pick_index(session)
        if index is None:
            return None
        logger.debug(
            LogTemplates.QUEUE_PICKED,
            index,
            session.queue_length,
            session.guild_id,
            session.shuffle_enabled,
        )
        return session.take_at(index)
