"""
Course Enrollment Bot
=====================

A Discord bot that looks up university course enrollment data: overall
enrollment graphs per term and cached section data for the active term.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. ENROLLBOT_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("ENROLLBOT_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from enrollbot.bot.cogs import events_listener, interaction_listener
from enrollbot.bot.dispatcher import CommandDispatcher
from enrollbot.commands import build_command_registry
from enrollbot.configuration.app_configuration import AppConfig, app_config
from enrollbot.services.enroll_data_service import OverallGraphIndex, SectionCache
from enrollbot.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents required by the commands and collectors.

    Message content is needed by message collectors to read typed answers.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def create_bot(config: AppConfig = app_config) -> discord.Bot:
    """Instantiate the Discord bot, its data services, commands and cogs.

    Command registration is handled by the events cog, so py-cord's own
    command sync is disabled to keep it from overwriting the registered set.
    """
    bot = discord.Bot(intents=build_intents(), auto_sync_commands=False)

    enroll_settings = config.enroll_data
    section_cache = SectionCache.from_settings(enroll_settings)
    graph_index = OverallGraphIndex.from_settings(enroll_settings)
    registry = build_command_registry(section_cache, graph_index, page_timeout=config.page_timeout_seconds)

    dispatcher = CommandDispatcher(
        bot,
        registry,
        is_prod=config.is_prod,
        bot_owner_ids=config.bot_owner_ids,
    )

    events_listener.setup(bot, registry, graph_index, config.command_guild_ids)
    interaction_listener.setup(bot, dispatcher)
    logger.info("Loaded %d commands; production mode: %s", len(registry), config.is_prod)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot) -> None:
    if not bot.is_closed():
        await bot.close()
    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap the bot and run it until it disconnects, returning an exit code."""
    token = load_environment()

    try:
        bot = create_bot()
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot)

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code."""
    logger.info("Starting Course Enrollment Bot…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
