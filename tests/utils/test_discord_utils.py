from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from enrollbot.util.discord_utils import (
    array_to_string_fields,
    codify_string,
    format_duration,
    generate_blank_embed,
    safe_clear_components,
    safe_delete_message,
)


def http_error(cls, status):
    return cls(MagicMock(status=status, reason="error"), "error")


@pytest.mark.parametrize("seconds,expected", [
    (0, "0 Seconds"),
    (1, "1 Second"),
    (45, "45 Seconds"),
    (90, "1 Minute 30 Seconds"),
    (3600, "1 Hour"),
    (7322, "2 Hours 2 Minutes 2 Seconds"),
    (86400, "1 Day"),
    (-5, "0 Seconds"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


@pytest.mark.parametrize("seconds,expected", [
    (2.5, "2 Seconds 500 Milliseconds"),
    (0.001, "1 Millisecond"),
    (0.0004, "0 Seconds"),
    (61.25, "1 Minute 1 Second 250 Milliseconds"),
])
def test_format_duration_with_milliseconds(seconds, expected):
    assert format_duration(seconds, include_milliseconds=True) == expected


def test_format_duration_drops_milliseconds_by_default():
    assert format_duration(2.5) == "2 Seconds"


def test_codify_string():
    assert codify_string("abc") == "```\nabc```"


def test_array_to_string_fields_packs_greedily():
    chunks = array_to_string_fields(["aaaa", "bbbb", "cccc"], lambda _, item: item, max_length=8)
    assert chunks == ["aaaabbbb", "cccc"]


def test_array_to_string_fields_passes_index():
    chunks = array_to_string_fields(["x", "y"], lambda index, item: f"{index}:{item};")
    assert chunks == ["0:x;1:y;"]


def test_array_to_string_fields_truncates_oversized_item():
    chunks = array_to_string_fields(["ab", "z" * 20, "cd"], lambda _, item: item, max_length=5)
    assert chunks == ["ab", "zzzzz", "cd"]
    assert all(len(chunk) <= 5 for chunk in chunks)


def test_array_to_string_fields_empty():
    assert array_to_string_fields([], lambda _, item: item) == []


def test_generate_blank_embed_sets_author_and_timestamp():
    user = SimpleNamespace(name="student", display_avatar=SimpleNamespace(url="https://cdn/avatar.png"))
    embed = generate_blank_embed(user, discord.Color.red())
    assert embed.author.name == "student"
    assert embed.author.icon_url == "https://cdn/avatar.png"
    assert embed.color == discord.Color.red()
    assert embed.timestamp is not None
    assert embed.timestamp.tzinfo is not None


@pytest.mark.asyncio
async def test_safe_delete_message_success():
    message = MagicMock()
    message.delete = AsyncMock()
    assert await safe_delete_message(message) is True
    message.delete.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [
    http_error(discord.NotFound, 404),
    http_error(discord.Forbidden, 403),
    http_error(discord.HTTPException, 500),
])
async def test_safe_delete_message_swallows_api_errors(error):
    message = MagicMock()
    message.delete = AsyncMock(side_effect=error)
    assert await safe_delete_message(message) is False


@pytest.mark.asyncio
async def test_safe_clear_components_removes_view():
    message = MagicMock()
    message.edit = AsyncMock()
    assert await safe_clear_components(message) is True
    message.edit.assert_awaited_once_with(view=None)


@pytest.mark.asyncio
async def test_safe_clear_components_on_missing_message():
    message = MagicMock()
    message.edit = AsyncMock(side_effect=http_error(discord.NotFound, 404))
    assert await safe_clear_components(message) is False
