"""
Slash command dispatcher.

:class:`CommandDispatcher` turns an application-command interaction into a
command run. Gates are applied in this order:

1. Development mode: outside production only bot owners may run anything.
2. Command lookup by exact name; unknown names are ignored.
3. Cooldown: a user still cooling down is told how long is left.
4. Guild-only commands are rejected in direct messages.
5. Permission check. Evaluating it puts non-admin, non-owner users on
   cooldown whatever the outcome.

Rejections are answered ephemerally, except for the development-mode notice
and the missing-permission embed.
"""

from __future__ import annotations

from typing import Collection

import discord

from enrollbot.commands.base_command import BaseCommand
from enrollbot.commands.registry import CommandRegistry
from enrollbot.datatypes.command_datatypes import (
    CommandContext,
    PermissionCheckResult,
    humanize_permission,
    parse_interaction_options,
)
from enrollbot.util.discord_utils import codify_string, format_duration, generate_blank_embed
from enrollbot.util.logger import get_logger

logger = get_logger("dispatcher")

DEVELOPMENT_MODE_MESSAGE = "The bot is currently in development mode, and cannot be used right now."
GUILD_ONLY_MESSAGE = "This command can only be used in a guild."
COMMAND_ERROR_MESSAGE = "A :bug: showed up while running this command."


def build_missing_permissions_embed(
    user: discord.abc.User,
    result: PermissionCheckResult,
) -> discord.Embed:
    """Explain which user (any-of) and bot (all-of) permissions are missing."""
    embed = generate_blank_embed(user, discord.Color.red())
    embed.title = "Missing Permissions."
    lines = ["You, or the bot, are missing permissions needed to run the command."]

    if result.missing_user_perms:
        embed.add_field(
            name="Missing Member Permissions (Need One)",
            value=codify_string(", ".join(humanize_permission(name) for name in result.missing_user_perms)),
            inline=False,
        )
        lines.append("- You need to have at least __one__ of the missing member permissions.")

    if result.missing_bot_perms:
        embed.add_field(
            name="Missing Bot Permissions (Need All)",
            value=codify_string(", ".join(humanize_permission(name) for name in result.missing_bot_perms)),
            inline=False,
        )
        lines.append("- The bot needs every permission that is specified to run this command.")

    if not embed.fields:
        embed.add_field(name="Unknown Error", value="Something wrong occurred. Please try again later.", inline=False)
        lines.append("- Unknown error occurred. Please report this.")

    embed.description = "\n".join(lines)
    return embed


class CommandDispatcher:
    """Routes application-command interactions to registered commands."""

    def __init__(
        self,
        bot: discord.Client,
        registry: CommandRegistry,
        *,
        is_prod: bool,
        bot_owner_ids: Collection[int],
    ) -> None:
        self.bot = bot
        self.registry = registry
        self.is_prod = is_prod
        self.bot_owner_ids = frozenset(bot_owner_ids)

    def is_bot_owner(self, user_id: int) -> bool:
        return user_id in self.bot_owner_ids

    def build_context(self, interaction: discord.Interaction) -> CommandContext:
        user = interaction.user
        return CommandContext(
            user=user,
            guild=interaction.guild,
            channel=interaction.channel,
            member=user if isinstance(user, discord.Member) else None,
            interaction=interaction,
            bot=self.bot,
            options=parse_interaction_options(interaction.data),
            is_bot_owner=self.is_bot_owner(user.id),
        )

    async def handle(self, interaction: discord.Interaction) -> None:
        """Validate an interaction and run the command it names, if any."""
        if interaction.type != discord.InteractionType.application_command:
            return

        user = interaction.user
        if not self.is_prod and not self.is_bot_owner(user.id):
            await interaction.response.send_message(content=DEVELOPMENT_MODE_MESSAGE)
            return

        command_name = (interaction.data or {}).get("name")
        command = self.registry.get(command_name) if command_name else None
        if command is None:
            logger.debug("Ignoring unknown command %r from user %s", command_name, user.id)
            return

        ctx = self.build_context(interaction)

        cooldown_left = command.check_cooldown_for(user.id)
        if cooldown_left > 0:
            duration = format_duration(cooldown_left, include_milliseconds=True)
            await interaction.response.send_message(
                content=f"You are on cooldown for **`{duration}`**.",
                ephemeral=True,
            )
            return

        if command.command_info.guild_only and ctx.guild is None:
            await interaction.response.send_message(content=GUILD_ONLY_MESSAGE, ephemeral=True)
            return

        result = command.has_permission_to_run(ctx)
        if not ctx.is_bot_owner and not result.has_admin:
            command.add_to_cooldown(user.id)

        if result.can_run:
            await self.run_command(command, ctx)
            return

        if result.reason:
            await interaction.response.send_message(content=result.reason, ephemeral=True)
            return

        logger.info("User %s lacks permissions for '%s': %s", user.id, command.name, result)
        await interaction.response.send_message(embed=build_missing_permissions_embed(ctx.user, result))

    async def run_command(self, command: BaseCommand, ctx: CommandContext) -> None:
        """Run a command body, reporting unexpected errors to the caller."""
        logger.info(
            "User %s (%s) ran '%s' with %s",
            ctx.user, ctx.user.id, command.name, ctx.options,
        )
        try:
            await command.run(ctx)
        except Exception as exc:
            logger.exception("Error in command '%s': %s", command.name, exc)
            await self.report_command_error(ctx.interaction)

    async def report_command_error(self, interaction: discord.Interaction) -> None:
        try:
            if interaction.response.is_done():
                await interaction.followup.send(COMMAND_ERROR_MESSAGE, ephemeral=True)
            else:
                await interaction.response.send_message(COMMAND_ERROR_MESSAGE, ephemeral=True)
        except discord.HTTPException as exc:
            logger.error("Failed to send error response to user: %s", exc)
