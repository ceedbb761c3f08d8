"""Discord UI views and components."""

from __future__ import annotations

from discord_jukebox.infrastructure.discord.views.base_view import BaseInteractiveView
from discord_jukebox.infrastructure.discord.views.candidate_select_view import (
    CandidateSelectView,
)
from discord_jukebox.infrastructure.discord.views.transport_view import TransportControlsView

__all__ = [
    "BaseInteractiveView",
    "CandidateSelectView",
    "TransportControlsView",
]
