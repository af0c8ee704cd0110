"""Interaction listener Cog: forwards application-command interactions to the dispatcher."""

import discord
from discord.ext import commands

from enrollbot.bot.dispatcher import CommandDispatcher
from enrollbot.util.logger import get_logger

logger = get_logger("interaction_listener_cog")


class InteractionListenerCog(commands.Cog):
    """Cog that hands every interaction to :class:`CommandDispatcher`.

    Component interactions are ignored by the dispatcher; collectors pick them
    up through ``bot.wait_for``.
    """

    def __init__(self, discord_bot_instance: discord.Bot, dispatcher: CommandDispatcher):
        self.bot = discord_bot_instance
        self.dispatcher = dispatcher
        logger.info("Interaction listener cog loaded")

    @commands.Cog.listener(name="on_interaction")
    async def on_interaction(self, interaction: discord.Interaction) -> None:
        await self.dispatcher.handle(interaction)


def setup(discord_bot_instance: discord.Bot, dispatcher: CommandDispatcher) -> None:
    """Register the InteractionListenerCog with the bot."""
    discord_bot_instance.add_cog(InteractionListenerCog(discord_bot_instance, dispatcher))
