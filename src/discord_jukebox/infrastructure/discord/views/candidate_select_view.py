"""Select menu for choosing one of the top search results."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import discord

from discord_jukebox.domain.music.entities import Candidate
from discord_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates
from discord_jukebox.infrastructure.discord.guards.voice_guards import send_ephemeral
from discord_jukebox.infrastructure.discord.views.base_view import BaseInteractiveView
from discord_jukebox.utils.reply import truncate, try_deliver

logger = logging.getLogger(__name__)

OPTION_LABEL_MAX = 95
OPTION_DESCRIPTION_MAX = 100


class CandidateSelectView(BaseInteractiveView):
    """One-shot picker restricted to the user who ran the search.

    The view only records the choice. After ``wait()`` returns, ``selected``
    holds the picked candidate, or None when the menu timed out.
    """

    def __init__(
        self,
        *,
        requester_id: int,
        candidates: Sequence[Candidate],
        timeout: float = 60.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self._requester_id = requester_id
        self._candidates = list(candidates)
        self.selected: Candidate | None = None

        options = [
            discord.SelectOption(
                label=truncate(
                    DiscordUIMessages.SELECT_OPTION_LABEL.format(index=i, title=c.title),
                    OPTION_LABEL_MAX,
                ),
                value=str(i - 1),
                description=truncate(c.url, OPTION_DESCRIPTION_MAX),
            )
            for i, c in enumerate(self._candidates, start=1)
        ]
        self._select: discord.ui.Select[CandidateSelectView] = discord.ui.Select(
            placeholder=DiscordUIMessages.SELECT_PLACEHOLDER,
            min_values=1,
            max_values=1,
            options=options,
        )
        self._select.callback = self._on_select  # type: ignore[method-assign]
        self.add_item(self._select)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user.id != self._requester_id:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_NOT_YOUR_MENU)
            return False
        return True

    async def _on_select(self, interaction: discord.Interaction) -> None:
        if self.selected is not None:
            return

        values = (interaction.data or {}).get("values") or []
        try:
            index = int(values[0])
        except (IndexError, ValueError):
            return
        if not 0 <= index < len(self._candidates):
            return

        self.selected = self._candidates[index]
        logger.info(
            LogTemplates.SELECTION_MADE,
            interaction.user.id,
            self.selected.title,
            interaction.guild_id,
        )
        self._disable_items()
        self.stop()
        await try_deliver("defer", interaction.response.defer())

    async def on_timeout(self) -> None:
        self._disable_items()
        await self._try_edit_message()
