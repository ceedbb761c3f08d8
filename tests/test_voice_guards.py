"""Tests for the member and voice-channel guards."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_jukebox.domain.shared.messages import DiscordUIMessages
from discord_jukebox.infrastructure.discord.guards.voice_guards import (
    get_member,
    get_voice_channel_id,
    send_ephemeral,
)


def _make_interaction(
    *,
    in_guild: bool = True,
    user_is_member: bool = True,
    in_voice: bool = True,
    user_channel_id: int = 100,
    answered: bool = False,
) -> MagicMock:
    interaction = MagicMock(spec=discord.Interaction)
    interaction.response = MagicMock()
    interaction.response.send_message = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=answered)
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()
    interaction.guild = MagicMock() if in_guild else None

    if user_is_member:
        user = MagicMock(spec=discord.Member)
        if in_voice:
            user.voice = MagicMock()
            user.voice.channel = MagicMock()
            user.voice.channel.id = user_channel_id
        else:
            user.voice = None
    else:
        user = MagicMock(spec=discord.User)

    interaction.user = user
    return interaction


class TestSendEphemeral:
    @pytest.mark.asyncio
    async def test_uses_response_when_fresh(self):
        interaction = _make_interaction()

        await send_ephemeral(interaction, "hi")

        interaction.response.send_message.assert_awaited_once_with("hi", ephemeral=True)
        interaction.followup.send.assert_not_called()

    @pytest.mark.asyncio
    async def test_uses_followup_when_answered(self):
        interaction = _make_interaction(answered=True)

        await send_ephemeral(interaction, "hi")

        interaction.followup.send.assert_awaited_once_with("hi", ephemeral=True)


class TestGetMember:
    @pytest.mark.asyncio
    async def test_returns_member(self):
        interaction = _make_interaction()

        assert await get_member(interaction) is interaction.user

    @pytest.mark.asyncio
    async def test_outside_guild(self):
        interaction = _make_interaction(in_guild=False)

        assert await get_member(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_SERVER_ONLY, ephemeral=True
        )

    @pytest.mark.asyncio
    async def test_user_not_member(self):
        interaction = _make_interaction(user_is_member=False)

        assert await get_member(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_VERIFY_VOICE_FAILED, ephemeral=True
        )


class TestGetVoiceChannelId:
    @pytest.mark.asyncio
    async def test_returns_channel_id(self):
        interaction = _make_interaction(user_channel_id=555)

        assert await get_voice_channel_id(interaction) == 555
        interaction.response.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_not_in_voice(self):
        interaction = _make_interaction(in_voice=False)

        assert await get_voice_channel_id(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_NEED_TO_BE_IN_VOICE, ephemeral=True
        )

    @pytest.mark.asyncio
    async def test_voice_state_without_channel(self):
        interaction = _make_interaction()
        interaction.user.voice.channel = None

        assert await get_voice_channel_id(interaction) is None

    @pytest.mark.asyncio
    async def test_outside_guild_short_circuits(self):
        interaction = _make_interaction(in_guild=False)

        assert await get_voice_channel_id(interaction) is None
        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.STATE_SERVER_ONLY, ephemeral=True
        )
