"""
Domain Layer

Contains pure business logic:
- shared/: Cross-cutting exceptions, messages, and constrained types
- music/: Track, guild session, and queue selection logic
"""

from discord_jukebox.domain.shared.exceptions import DomainError

__all__ = [
    "DomainError",
]
