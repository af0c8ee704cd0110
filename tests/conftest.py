"""
Pytest configuration and fixtures for enrollbot tests.
"""

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


class FakeClient:
    """In-memory stand-in for ``discord.Client.wait_for``.

    Waiters are resolved by :meth:`dispatch` the way py-cord resolves them: the
    first pending waiter for the event whose check passes gets the object, and
    a waiter whose timeout expires raises ``asyncio.TimeoutError``.
    """

    def __init__(self):
        self._waiters = []
        self.wait_for_calls = []

    async def wait_for(self, event, *, check=None, timeout=None):
        self.wait_for_calls.append(event)
        future = asyncio.get_running_loop().create_future()
        entry = (event, check, future)
        self._waiters.append(entry)
        try:
            return await asyncio.wait_for(future, timeout)
        finally:
            if entry in self._waiters:
                self._waiters.remove(entry)

    def dispatch(self, event, obj):
        for entry in list(self._waiters):
            name, check, future = entry
            if name != event or future.done():
                continue
            if check is None or check(obj):
                future.set_result(obj)
                self._waiters.remove(entry)

    def pending(self, event):
        return sum(1 for name, _, future in self._waiters if name == event and not future.done())


async def wait_until_listening(client, event, *, attempts=100):
    """Yield to the loop until a waiter for ``event`` is registered."""
    for _ in range(attempts):
        if client.pending(event):
            return
        await asyncio.sleep(0)
    raise AssertionError(f"nobody is waiting for {event!r}")


def make_message(content, *, author_id=1, channel_id=10, message_id=100):
    message = MagicMock()
    message.id = message_id
    message.content = content
    message.author.id = author_id
    message.channel.id = channel_id
    message.delete = AsyncMock()
    message.edit = AsyncMock()
    return message


def make_component_interaction(custom_id, *, user_id=1, channel_id=10, message_id=500, interaction_id=900):
    import discord

    interaction = MagicMock()
    interaction.id = interaction_id
    interaction.type = discord.InteractionType.component
    interaction.user.id = user_id
    interaction.channel_id = channel_id
    interaction.message.id = message_id
    interaction.data = {"custom_id": custom_id}
    interaction.response.defer = AsyncMock()
    interaction.response.edit_message = AsyncMock()
    return interaction


@pytest.fixture()
def fake_client():
    return FakeClient()


@pytest.fixture()
def target_channel():
    channel = MagicMock()
    channel.id = 10
    channel.send = AsyncMock(return_value=make_message("prompt", author_id=999, message_id=500))
    return channel


@pytest.fixture()
def target_author():
    return SimpleNamespace(id=1)
