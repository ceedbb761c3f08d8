"""In-memory guild session store."""

from __future__ import annotations

import logging

from discord_jukebox.domain.music.entities import GuildSession
from discord_jukebox.domain.music.repository import SessionStore
from discord_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Process-local session registry keyed by guild ID.

    Sessions live for the lifetime of the process and are not persisted.
    """

    def __init__(self) -> None:
        self._sessions: dict[int, GuildSession] = {}

    def get(self, guild_id: int) -> GuildSession | None:
        return self._sessions.get(guild_id)

    def get_or_create(self, guild_id: int) -> GuildSession:
        session = self._sessions.get(guild_id)
        if session is None:
            session = GuildSession(guild_id=guild_id)
            self._sessions[guild_id] = session
            logger.debug(LogTemplates.SESSION_CREATED, session.session_id, guild_id)
        return session

    def remove(self, guild_id: int) -> GuildSession | None:
        session = self._sessions.pop(guild_id, None)
        if session is not None:
            logger.debug(LogTemplates.SESSION_REMOVED, session.session_id, guild_id)
        return session

    def count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        self._sessions.clear()
