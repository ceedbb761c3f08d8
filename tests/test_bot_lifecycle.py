"""
Unit Tests for Bot Lifecycle

Tests for MusicBot in infrastructure/discord/bot.py:
- Initialization (intents, prefix, container wiring)
- setup_hook (cog loading, error handler, optional command sync)
- Command sync to test guilds and globally
- Global slash-command error handler
- on_ready presence
- close() (voice clients, container shutdown, shutdown event)
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch

import discord
import pytest
from discord.ext import commands

from discord_jukebox.domain.shared.messages import DiscordUIMessages
from discord_jukebox.infrastructure.discord.bot import COGS, MusicBot, create_bot


@pytest.fixture
def mock_settings():
    settings = MagicMock()
    settings.discord.command_prefix = "!"
    settings.discord.sync_on_startup = False
    settings.discord.test_guild_ids = ()
    return settings


@pytest.fixture
def mock_container():
    container = MagicMock()
    container.shutdown = AsyncMock()
    container.set_bot = MagicMock()
    return container


@pytest.fixture
def bot(mock_container, mock_settings):
    return MusicBot(container=mock_container, settings=mock_settings)


# =============================================================================
# Initialization
# =============================================================================


class TestBotInitialization:
    @pytest.mark.asyncio
    async def test_init_sets_intents(self, bot):
        assert bot.intents.voice_states is True
        assert bot.intents.guilds is True
        assert bot.intents.message_content is False

    @pytest.mark.asyncio
    async def test_init_sets_command_prefix(self, mock_container, mock_settings):
        mock_settings.discord.command_prefix = "?"

        bot = MusicBot(container=mock_container, settings=mock_settings)

        assert bot.command_prefix == "?"

    @pytest.mark.asyncio
    async def test_init_disables_default_help(self, bot):
        assert bot.help_command is None

    @pytest.mark.asyncio
    async def test_init_wires_container(self, bot, mock_container, mock_settings):
        assert bot.container is mock_container
        assert bot.settings is mock_settings
        mock_container.set_bot.assert_called_once_with(bot)

    @pytest.mark.asyncio
    async def test_init_creates_shutdown_event(self, bot):
        assert isinstance(bot._shutdown_event, asyncio.Event)
        assert not bot._shutdown_event.is_set()


# =============================================================================
# setup_hook
# =============================================================================


class TestSetupHook:
    @pytest.mark.asyncio
    async def test_loads_cogs_and_installs_error_handler(self, bot):
        with (
            patch.object(bot, "_load_cogs", new_callable=AsyncMock) as load_cogs,
            patch.object(bot, "_sync_commands", new_callable=AsyncMock) as sync,
        ):
            await bot.setup_hook()

        load_cogs.assert_awaited_once()
        sync.assert_not_called()
        assert bot.tree.on_error == bot._on_app_command_error

    @pytest.mark.asyncio
    async def test_syncs_when_enabled(self, bot, mock_settings):
        mock_settings.discord.sync_on_startup = True

        with (
            patch.object(bot, "_load_cogs", new_callable=AsyncMock),
            patch.object(bot, "_sync_commands", new_callable=AsyncMock) as sync,
        ):
            await bot.setup_hook()

        sync.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sync_failure_does_not_abort_setup(self, bot, mock_settings):
        mock_settings.discord.sync_on_startup = True

        with (
            patch.object(bot, "_load_cogs", new_callable=AsyncMock),
            patch.object(
                bot, "_sync_commands", new_callable=AsyncMock, side_effect=RuntimeError("down")
            ),
        ):
            await bot.setup_hook()

    @pytest.mark.asyncio
    async def test_load_cogs_loads_music_cog(self, bot):
        with patch.object(bot, "load_extension", new_callable=AsyncMock) as load:
            await bot._load_cogs()

        assert COGS == ("discord_jukebox.infrastructure.discord.cogs.music_cog",)
        load.assert_awaited_once_with(COGS[0])

    @pytest.mark.asyncio
    async def test_load_cogs_propagates_failure(self, bot):
        with patch.object(
            bot,
            "load_extension",
            new_callable=AsyncMock,
            side_effect=commands.ExtensionFailed(COGS[0], RuntimeError("bad")),
        ):
            with pytest.raises(commands.ExtensionFailed):
                await bot._load_cogs()


# =============================================================================
# Command sync
# =============================================================================


class TestSyncCommands:
    @pytest.mark.asyncio
    async def test_global_sync(self, bot):
        with patch.object(bot.tree, "sync", new_callable=AsyncMock, return_value=[1, 2]) as sync:
            await bot._sync_commands()

        sync.assert_awaited_once_with()

    @pytest.mark.asyncio
    async def test_test_guilds_synced_first(self, bot, mock_settings):
        mock_settings.discord.test_guild_ids = (123,)

        with (
            patch.object(bot.tree, "copy_global_to") as copy,
            patch.object(bot.tree, "sync", new_callable=AsyncMock, return_value=[]) as sync,
        ):
            await bot._sync_commands()

        assert copy.call_args.kwargs["guild"].id == 123
        assert sync.await_count == 2
        assert sync.await_args_list[0].kwargs["guild"].id == 123

    @pytest.mark.asyncio
    async def test_sync_errors_are_logged(self, bot, mock_settings):
        mock_settings.discord.test_guild_ids = (123,)
        error = discord.HTTPException(MagicMock(status=500, reason="Server Error"), "oops")

        with (
            patch.object(bot.tree, "copy_global_to"),
            patch.object(bot.tree, "sync", new_callable=AsyncMock, side_effect=error),
        ):
            await bot._sync_commands()


# =============================================================================
# Global error handler
# =============================================================================


class TestAppCommandErrorHandler:
    @pytest.mark.asyncio
    async def test_sends_generic_error(self, bot):
        interaction = AsyncMock()
        interaction.command.name = "play"
        interaction.response.is_done = MagicMock(return_value=False)
        error = discord.app_commands.AppCommandError("secret internals")

        await bot._on_app_command_error(interaction, error)

        interaction.response.send_message.assert_awaited_once_with(
            DiscordUIMessages.ERROR_INTERNAL, ephemeral=True
        )

    @pytest.mark.asyncio
    async def test_uses_followup_when_already_responded(self, bot):
        interaction = AsyncMock()
        interaction.response.is_done = MagicMock(return_value=True)

        await bot._on_app_command_error(
            interaction, discord.app_commands.AppCommandError("boom")
        )

        interaction.followup.send.assert_awaited_once_with(
            DiscordUIMessages.ERROR_INTERNAL, ephemeral=True
        )

    @pytest.mark.asyncio
    async def test_send_failure_is_swallowed(self, bot):
        interaction = AsyncMock()
        interaction.response.is_done = MagicMock(return_value=False)
        interaction.response.send_message.side_effect = discord.HTTPException(
            MagicMock(status=404, reason="Not Found"), "Unknown interaction"
        )

        await bot._on_app_command_error(
            interaction, discord.app_commands.AppCommandError("boom")
        )


# =============================================================================
# on_ready / close
# =============================================================================


class TestOnReady:
    @pytest.mark.asyncio
    async def test_sets_listening_presence(self, bot):
        user = MagicMock()
        user.id = 1
        with (
            patch.object(MusicBot, "user", new_callable=PropertyMock, return_value=user),
            patch.object(MusicBot, "guilds", new_callable=PropertyMock, return_value=[]),
            patch.object(bot, "change_presence", new_callable=AsyncMock) as presence,
        ):
            await bot.on_ready()

        activity = presence.await_args.kwargs["activity"]
        assert activity.type == discord.ActivityType.listening
        assert activity.name == "/play"


class TestBotClose:
    @pytest.mark.asyncio
    async def test_close_disconnects_and_shuts_down(self, bot, mock_container):
        vc = MagicMock()
        vc.disconnect = AsyncMock()

        with (
            patch.object(MusicBot, "voice_clients", new_callable=PropertyMock, return_value=[vc]),
            patch("discord.ext.commands.Bot.close", new_callable=AsyncMock) as parent_close,
        ):
            await bot.close()

        vc.disconnect.assert_awaited_once_with(force=True)
        mock_container.shutdown.assert_awaited_once()
        parent_close.assert_awaited_once()
        assert bot._shutdown_event.is_set()

    @pytest.mark.asyncio
    async def test_close_survives_failures(self, bot, mock_container):
        vc = MagicMock()
        vc.disconnect = AsyncMock(side_effect=discord.ClientException("gone"))
        mock_container.shutdown.side_effect = RuntimeError("boom")

        with (
            patch.object(MusicBot, "voice_clients", new_callable=PropertyMock, return_value=[vc]),
            patch("discord.ext.commands.Bot.close", new_callable=AsyncMock),
        ):
            await bot.close()

        assert bot._shutdown_event.is_set()


class TestCreateBot:
    @pytest.mark.asyncio
    async def test_factory(self, mock_container, mock_settings):
        bot = create_bot(mock_container, mock_settings)

        assert isinstance(bot, MusicBot)
        assert bot.container is mock_container
