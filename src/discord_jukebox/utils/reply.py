"""Helpers for text shown in Discord and for interaction calls that may fail."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from functools import cache
from typing import TypeVar

import discord

from discord_jukebox.domain.shared.exceptions import InteractionDeliveryFailure
from discord_jukebox.domain.shared.messages import DiscordUIMessages, LogTemplates

logger = logging.getLogger(__name__)

T = TypeVar("T")


@cache
def truncate(text: str, max_length: int = 90) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + "…"


def on_off(enabled: bool) -> str:
    return DiscordUIMessages.STATE_ON if enabled else DiscordUIMessages.STATE_OFF


async def deliver(operation: str, call: Awaitable[T]) -> T:
    """Await a Discord delivery call, translating transport errors.

    Raises:
        InteractionDeliveryFailure: If Discord rejected the call.
    """
    try:
        return await call
    except discord.HTTPException as exc:
        raise InteractionDeliveryFailure(operation, str(exc)) from exc


async def try_deliver(operation: str, call: Awaitable[T]) -> T | None:
    """Await a Discord delivery call; a failure is logged and yields None."""
    try:
        return await deliver(operation, call)
    except InteractionDeliveryFailure as exc:
        logger.warning(LogTemplates.INTERACTION_DELIVERY_FAILED, operation, exc)
        return None
