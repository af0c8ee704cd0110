"""Event listener Cog for enrollbot.

Handles the bot lifecycle: on_ready sets the presence, registers the slash
commands with Discord and warms the overall graph listings.
"""

from typing import List

import discord
from discord.ext import commands

from enrollbot.commands.registry import CommandRegistry
from enrollbot.services.enroll_data_service import OverallGraphIndex
from enrollbot.util.logger import get_logger

logger = get_logger("events_listener_cog")


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle handlers."""

    def __init__(
        self,
        discord_bot_instance: discord.Bot,
        registry: CommandRegistry,
        graph_index: OverallGraphIndex,
        command_guild_ids: List[int],
    ):
        """Initialize the events listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        registry:
            Commands to register with Discord once connected.
        graph_index:
            Overall graph listings to preload.
        command_guild_ids:
            Guilds to register the commands in; empty for global registration.
        """
        self.bot = discord_bot_instance
        self.registry = registry
        self.graph_index = graph_index
        self.command_guild_ids = command_guild_ids
        self.commands_registered = False
        logger.info("Events listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        if self.bot.user:
            logger.info("Bot connected as %s (ID: %s)", self.bot.user, self.bot.user.id)
        else:
            logger.warning("Bot partially connected, but user information not yet available.")
            return

        await self.bot.change_presence(
            status=discord.Status.online,
            activity=discord.Activity(type=discord.ActivityType.watching, name="course enrollments"),
        )
        # on_ready fires again after every reconnect with a new session.
        if self.commands_registered:
            logger.info("Reconnected; commands are already registered.")
            return

        self.commands_registered = await self.register_commands()
        await self.graph_index.preload()

    async def register_commands(self) -> bool:
        """Upsert every registered command, per configured guild or globally.

        Returns True when every upsert succeeded.
        """
        payloads = self.registry.payloads()
        application_id = self.bot.application_id or self.bot.user.id
        try:
            if self.command_guild_ids:
                for guild_id in self.command_guild_ids:
                    await self.bot.http.bulk_upsert_guild_commands(application_id, guild_id, payloads)
                    logger.info("Registered %d commands in guild %s", len(payloads), guild_id)
            else:
                await self.bot.http.bulk_upsert_global_commands(application_id, payloads)
                logger.info("Registered %d global commands", len(payloads))
        except discord.HTTPException as exc:
            logger.error("Failed to register commands: %s", exc)
            return False
        return True


def setup(
    discord_bot_instance: discord.Bot,
    registry: CommandRegistry,
    graph_index: OverallGraphIndex,
    command_guild_ids: List[int],
) -> None:
    """Register the EventsListenerCog with the bot."""
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, registry, graph_index, command_guild_ids))
