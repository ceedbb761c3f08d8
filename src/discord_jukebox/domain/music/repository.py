"""
Music Domain Repository Interfaces

Abstract base classes defining the contracts for session storage.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod

from discord_jukebox.domain.music.entities import GuildSession


class SessionStore(ABC):
    """Abstract registry of guild playback sessions.

    The store exclusively owns every session. Callers borrow a session for
    the duration of one synchronous step and must fetch it again after any
    await, since a concurrent stop may have removed or replaced it.
    """

    @abstractmethod
    def get(self, guild_id: int) -> GuildSession | None:
        """Retrieve a session by guild ID.

        Args:
            guild_id: The Discord guild ID.

        Returns:
            The session if found, None otherwise.
        """
        ...

    @abstractmethod
    def get_or_create(self, guild_id: int) -> GuildSession:
        """Get an existing session or create an idle one with an empty queue.

        Args:
            guild_id: The Discord guild ID.

        Returns:
            The existing or newly created session.
        """
        ...

    @abstractmethod
    def remove(self, guild_id: int) -> GuildSession | None:
        """Remove a session from the store.

        Args:
            guild_id: The Discord guild ID.

        Returns:
            The removed session, or None if there was none.
        """
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of live sessions."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Drop every session."""
        ...
