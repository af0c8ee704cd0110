"""``/help``: list the commands, or describe one of them."""

from __future__ import annotations

import discord

from enrollbot.commands.base_command import BaseCommand
from enrollbot.commands.registry import CommandRegistry
from enrollbot.datatypes.command_datatypes import (
    ArgumentInfo,
    ArgumentType,
    CommandContext,
    CommandInfo,
    humanize_permission,
)
from enrollbot.util.discord_utils import array_to_string_fields, codify_string, generate_blank_embed


def _format_argument(_: int, argument: ArgumentInfo) -> str:
    return (
        f"__Argument__: {argument.display_name} (`{argument.arg_name}`)\n"
        f"- {argument.description}\n"
        f"- Required? {'Yes' if argument.required else 'No'}\n"
        f"- Example(s): `[{', '.join(argument.example)}]`\n\n"
    )


def _format_permissions(names: tuple[str, ...]) -> str:
    return ", ".join(humanize_permission(name) for name in names) if names else "N/A."


class Help(BaseCommand):
    """Runs the help command. This lists all commands."""

    def __init__(self, registry: CommandRegistry) -> None:
        super().__init__(CommandInfo(
            cmd_code="HELP",
            formal_command_name="Help",
            bot_command_name="help",
            description="Runs the help command. This lists all commands.",
            argument_info=(
                ArgumentInfo(
                    display_name="Command Name",
                    arg_name="command",
                    description="The command to find help information for.",
                    type=ArgumentType.string,
                    pretty_type="String",
                    required=False,
                    example=("help", "lookupcached"),
                ),
            ),
            command_cooldown=4,
        ))
        self.registry = registry

    def build_command_embed(self, ctx: CommandContext, command: BaseCommand) -> discord.Embed:
        info = command.command_info
        embed = generate_blank_embed(ctx.user, discord.Color.green())
        embed.title = f"Command Help: **{info.formal_command_name}**"
        embed.description = info.description
        embed.set_footer(text=f"Server Context: {ctx.guild.name if ctx.guild else 'Direct Message'}")
        embed.add_field(name="Command Code", value=codify_string(info.bot_command_name), inline=False)
        embed.add_field(name="Guild Only?", value=codify_string("Yes" if info.guild_only else "No"), inline=True)
        embed.add_field(name="Bot Owner Only?", value=codify_string("Yes" if info.bot_owner_only else "No"), inline=True)
        embed.add_field(
            name="Discord User Permissions Needed (Need One)",
            value=codify_string(_format_permissions(info.general_permissions)),
            inline=False,
        )
        embed.add_field(
            name="Discord Bot Permissions Needed (Need All)",
            value=codify_string(_format_permissions(info.bot_permissions)),
            inline=False,
        )

        for chunk in array_to_string_fields(info.argument_info, _format_argument):
            embed.add_field(name=f"Argument Information ({len(info.argument_info)})", value=chunk, inline=False)
        return embed

    def build_list_embed(self, ctx: CommandContext, unknown_name: str | None) -> discord.Embed:
        embed = generate_blank_embed(ctx.user, discord.Color.green())
        embed.title = "Command List"
        embed.set_footer(text=f"Server Context: {ctx.guild.name if ctx.guild else 'Direct Messages'}")
        if unknown_name:
            embed.description = f"The command, `{unknown_name}`, could not be found. Try looking through the list below."
        else:
            embed.description = "Below is a list of all supported commands."

        for category, commands in self.registry.categories().items():
            runnable = [command.name for command in commands if command.has_permission_to_run(ctx).can_run]
            embed.add_field(name=category, value=codify_string(", ".join(runnable) or "None"), inline=False)
        return embed

    async def run(self, ctx: CommandContext) -> int:
        command_name = ctx.get_option("command")
        command = self.registry.get(command_name) if command_name else None

        if command is not None:
            embed = self.build_command_embed(ctx, command)
        else:
            embed = self.build_list_embed(ctx, command_name)

        await ctx.interaction.response.send_message(embed=embed)
        return 0
