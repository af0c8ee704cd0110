from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from enrollbot.bot.cogs.interaction_listener import InteractionListenerCog
from enrollbot.bot.dispatcher import (
    COMMAND_ERROR_MESSAGE,
    DEVELOPMENT_MODE_MESSAGE,
    GUILD_ONLY_MESSAGE,
    CommandDispatcher,
    build_missing_permissions_embed,
)
from enrollbot.commands.base_command import OWNER_ONLY_REASON, BaseCommand
from enrollbot.commands.registry import CommandRegistry
from enrollbot.datatypes.command_datatypes import CommandInfo, PermissionCheckResult

OWNER_ID = 1
USER_ID = 2


class RecordingCommand(BaseCommand):
    def __init__(self, **info_overrides):
        values = dict(
            cmd_code="PING", formal_command_name="Ping", bot_command_name="ping",
            description="Ping.", command_cooldown=5,
        )
        values.update(info_overrides)
        super().__init__(CommandInfo(**values))
        self.calls = []
        self.error = None

    async def run(self, ctx):
        self.calls.append(ctx)
        if self.error:
            raise self.error
        return 0


def make_user(user_id, *, member=False, permissions=None):
    user = MagicMock(spec=discord.Member) if member else MagicMock()
    user.id = user_id
    user.name = f"user{user_id}"
    user.display_avatar.url = "https://cdn.example/avatar.png"
    if member:
        user.guild_permissions = permissions or discord.Permissions.none()
    return user


def make_guild(bot_permissions=None):
    return SimpleNamespace(
        name="Test Guild",
        me=SimpleNamespace(guild_permissions=bot_permissions or discord.Permissions.all()),
    )


def make_interaction(name="ping", *, user=None, guild=None, options=None):
    interaction = MagicMock()
    interaction.type = discord.InteractionType.application_command
    interaction.user = user or make_user(USER_ID)
    interaction.guild = guild
    interaction.data = {"name": name, "options": options or []}
    interaction.response.send_message = AsyncMock()
    interaction.response.is_done = MagicMock(return_value=False)
    interaction.followup.send = AsyncMock()
    return interaction


def make_dispatcher(*commands, is_prod=True):
    registry = CommandRegistry()
    for command in commands:
        registry.register("General", command)
    return CommandDispatcher(MagicMock(), registry, is_prod=is_prod, bot_owner_ids=[OWNER_ID])


@pytest.mark.asyncio
async def test_runs_command_with_parsed_options():
    command = RecordingCommand()
    dispatcher = make_dispatcher(command)
    interaction = make_interaction(options=[{"name": "target", "value": "x"}])

    await dispatcher.handle(interaction)

    assert len(command.calls) == 1
    ctx = command.calls[0]
    assert ctx.get_option("target") == "x"
    assert ctx.is_bot_owner is False
    assert ctx.member is None
    assert command.check_cooldown_for(USER_ID) > 0


@pytest.mark.asyncio
async def test_ignores_component_interactions():
    command = RecordingCommand()
    dispatcher = make_dispatcher(command)
    interaction = make_interaction()
    interaction.type = discord.InteractionType.component

    await dispatcher.handle(interaction)

    assert command.calls == []
    interaction.response.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_development_mode_blocks_everyone_but_owners():
    command = RecordingCommand()
    dispatcher = make_dispatcher(command, is_prod=False)

    blocked = make_interaction()
    await dispatcher.handle(blocked)
    await dispatcher.handle(make_interaction(user=make_user(OWNER_ID)))

    blocked.response.send_message.assert_awaited_once_with(content=DEVELOPMENT_MODE_MESSAGE)
    assert [ctx.user.id for ctx in command.calls] == [OWNER_ID]


@pytest.mark.asyncio
async def test_unknown_command_is_ignored():
    dispatcher = make_dispatcher(RecordingCommand())
    interaction = make_interaction(name="nope")

    await dispatcher.handle(interaction)

    interaction.response.send_message.assert_not_called()


@pytest.mark.asyncio
async def test_cooldown_rejects_second_run():
    command = RecordingCommand()
    dispatcher = make_dispatcher(command)
    await dispatcher.handle(make_interaction())

    second = make_interaction()
    await dispatcher.handle(second)

    assert len(command.calls) == 1
    kwargs = second.response.send_message.await_args.kwargs
    assert kwargs["ephemeral"] is True
    assert kwargs["content"].startswith("You are on cooldown for **`")


@pytest.mark.asyncio
async def test_owners_and_admins_are_not_put_on_cooldown():
    command = RecordingCommand()
    dispatcher = make_dispatcher(command)
    admin = make_user(3, member=True, permissions=discord.Permissions(administrator=True))

    await dispatcher.handle(make_interaction(user=make_user(OWNER_ID)))
    await dispatcher.handle(make_interaction(user=admin, guild=make_guild()))

    assert command.check_cooldown_for(OWNER_ID) == 0
    assert command.check_cooldown_for(3) == 0


@pytest.mark.asyncio
async def test_guild_only_rejected_in_direct_messages():
    command = RecordingCommand(guild_only=True)
    dispatcher = make_dispatcher(command)
    interaction = make_interaction()

    await dispatcher.handle(interaction)

    assert command.calls == []
    interaction.response.send_message.assert_awaited_once_with(content=GUILD_ONLY_MESSAGE, ephemeral=True)
    assert command.check_cooldown_for(USER_ID) == 0


@pytest.mark.asyncio
async def test_owner_only_reason_is_sent_ephemerally():
    command = RecordingCommand(bot_owner_only=True)
    dispatcher = make_dispatcher(command)
    interaction = make_interaction()

    await dispatcher.handle(interaction)

    assert command.calls == []
    interaction.response.send_message.assert_awaited_once_with(content=OWNER_ONLY_REASON, ephemeral=True)


@pytest.mark.asyncio
async def test_missing_permissions_embed_and_cooldown():
    command = RecordingCommand(general_permissions=("manage_guild",), bot_permissions=("embed_links",))
    dispatcher = make_dispatcher(command)
    user = make_user(USER_ID, member=True)
    interaction = make_interaction(user=user, guild=make_guild(discord.Permissions.none()))

    await dispatcher.handle(interaction)

    assert command.calls == []
    embed = interaction.response.send_message.await_args.kwargs["embed"]
    assert embed.title == "Missing Permissions."
    assert [field.name for field in embed.fields] == [
        "Missing Member Permissions (Need One)",
        "Missing Bot Permissions (Need All)",
    ]
    assert "Manage Guild" in embed.fields[0].value
    assert "Embed Links" in embed.fields[1].value
    assert command.check_cooldown_for(USER_ID) > 0


@pytest.mark.asyncio
async def test_command_errors_are_reported():
    command = RecordingCommand()
    command.error = RuntimeError("boom")
    dispatcher = make_dispatcher(command)
    interaction = make_interaction()

    await dispatcher.handle(interaction)

    interaction.response.send_message.assert_awaited_once_with(COMMAND_ERROR_MESSAGE, ephemeral=True)


@pytest.mark.asyncio
async def test_command_errors_use_followup_after_response():
    command = RecordingCommand()
    command.error = RuntimeError("boom")
    dispatcher = make_dispatcher(command)
    interaction = make_interaction()
    interaction.response.is_done.return_value = True

    await dispatcher.handle(interaction)

    interaction.followup.send.assert_awaited_once_with(COMMAND_ERROR_MESSAGE, ephemeral=True)


def test_missing_permissions_embed_falls_back_to_unknown_error():
    embed = build_missing_permissions_embed(make_user(USER_ID), PermissionCheckResult(can_run=False, has_admin=False))

    assert [field.name for field in embed.fields] == ["Unknown Error"]


@pytest.mark.asyncio
async def test_interaction_listener_forwards_to_dispatcher():
    dispatcher = MagicMock()
    dispatcher.handle = AsyncMock()
    cog = InteractionListenerCog(MagicMock(), dispatcher)
    interaction = make_interaction()

    await cog.on_interaction(interaction)

    dispatcher.handle.assert_awaited_once_with(interaction)
