"""Base class for interactive Discord views with common patterns."""

from __future__ import annotations

from typing import Any

import discord

from discord_jukebox.utils.reply import try_deliver


class BaseInteractiveView(discord.ui.View):
    """Base view that tracks the message it is attached to."""

    def __init__(self, *, timeout: float | None = 180.0) -> None:
        super().__init__(timeout=timeout)
        self._message: discord.Message | None = None

    @property
    def message(self) -> discord.Message | None:
        return self._message

    def set_message(self, message: discord.Message) -> None:
        self._message = message

    def _disable_items(self) -> None:
        for item in self.children:
            if isinstance(item, discord.ui.Button | discord.ui.Select):
                item.disabled = True

    async def _try_edit_message(self, **fields: Any) -> None:
        """Re-render the tracked message with this view; failures are logged and dropped."""
        if self._message is None:
            return
        fields.setdefault("view", self)
        await try_deliver("edit_message", self._message.edit(**fields))
