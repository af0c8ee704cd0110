"""
discord_utils.py
================

Stateless Discord helpers shared by the commands and the collector: embed
scaffolding, text formatting for embed fields, and best-effort message
cleanup that never raises on recoverable API errors.
"""

import datetime
from typing import Callable, List, Sequence, TypeVar, Union

import discord

from enrollbot.util.logger import get_logger

logger = get_logger("discord_utils")

T = TypeVar("T")

# Discord's limit on the value of a single embed field.
EMBED_FIELD_VALUE_LIMIT = 1024

_DURATION_UNITS = (
    ("Day", 86_400_000),
    ("Hour", 3_600_000),
    ("Minute", 60_000),
    ("Second", 1_000),
)


def format_duration(seconds: float, *, include_milliseconds: bool = False) -> str:
    """
    Convert a duration in seconds to a human-readable string.

    Args:
        seconds (float): Duration in seconds.
        include_milliseconds (bool): Whether to append leftover milliseconds.

    Returns:
        str: e.g. ``"1 Minute 30 Seconds"``, or ``"0 Seconds"`` for empty durations.
    """
    remaining_ms = max(int(round(seconds * 1000)), 0)
    parts: List[str] = []
    for unit, unit_ms in _DURATION_UNITS:
        amount, remaining_ms = divmod(remaining_ms, unit_ms)
        if amount:
            parts.append(f"{amount} {unit}{'s' if amount != 1 else ''}")

    if include_milliseconds and remaining_ms:
        parts.append(f"{remaining_ms} Millisecond{'s' if remaining_ms != 1 else ''}")

    return " ".join(parts) if parts else "0 Seconds"


def codify_string(text: str) -> str:
    """Wrap text in a code block so embeds render it monospaced."""
    return f"```\n{text}```"


def array_to_string_fields(
    items: Sequence[T],
    formatter: Callable[[int, T], str],
    max_length: int = EMBED_FIELD_VALUE_LIMIT,
) -> List[str]:
    """
    Format items and pack the resulting strings into chunks no longer than ``max_length``.

    Items are packed greedily in order. A single formatted item longer than
    ``max_length`` gets a chunk of its own, truncated to fit.

    Args:
        items: Items to render.
        formatter: Called with ``(index, item)``; returns the text for that item.
        max_length: Maximum length of each returned chunk.

    Returns:
        List[str]: The packed chunks, empty when ``items`` is empty.
    """
    chunks: List[str] = []
    current = ""
    for index, item in enumerate(items):
        text = formatter(index, item)
        if len(text) > max_length:
            text = text[:max_length]
        if current and len(current) + len(text) > max_length:
            chunks.append(current)
            current = ""
        current += text

    if current:
        chunks.append(current)
    return chunks


def generate_blank_embed(
    user: Union[discord.User, discord.Member],
    color: Union[discord.Color, int] = discord.Color.default(),
) -> discord.Embed:
    """Create an empty embed authored by ``user`` and timestamped now."""
    embed = discord.Embed(
        color=color,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    embed.set_author(name=str(user.name), icon_url=user.display_avatar.url)
    return embed


async def safe_delete_message(message: discord.Message) -> bool:
    """
    Attempt to delete a Discord message, suppressing recoverable errors.

    Args:
        message (discord.Message): The message to delete.

    Returns:
        bool: True if deletion succeeded, False otherwise.
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        return False
    except discord.Forbidden:
        logger.warning("No permission to delete message %s", message.id)
    except discord.HTTPException as exc:
        logger.error("Error deleting message %s: %s", message.id, exc)
    return False


async def safe_clear_components(message: discord.Message) -> bool:
    """
    Remove every component (buttons, select menus) from a message, keeping its content.

    Returns:
        bool: True if the edit succeeded, False otherwise.
    """
    try:
        await message.edit(view=None)
        return True
    except discord.NotFound:
        return False
    except discord.HTTPException as exc:
        logger.warning("Could not clear components of message %s: %s", message.id, exc)
    return False
