"""
Awaitable collectors for follow-up user input.

A command that needs more input from its caller (a typed answer, a button
press, or whichever of the two comes first) uses one of the ``start_*``
coroutines below. Each takes the options dataclass for its mode and resolves
to a :class:`CollectorResult` instead of raising:

- :func:`start_normal_collector`: waits for a message that the caller's
  extractor accepts.
- :func:`start_interaction_ephemeral_collector`: waits for a component click
  whose custom ID starts with a caller-chosen prefix. No message is owned, so
  this works for ephemeral and interaction-response messages.
- :func:`start_interaction_collector`: waits for a component click on a
  message the collector sends (or reuses) and cleans that message up.
- :func:`start_double_collector`: races the message and component waits; the
  first qualifying result wins and the message is cleaned up once.

Expiry is reported as ``TIMED_OUT``, never raised. Failing to send the seed
message is reported as ``NOT_STARTED``.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Generic, List, Optional, Sequence, TypeVar, Union

import discord

from enrollbot.util.discord_utils import safe_clear_components, safe_delete_message
from enrollbot.util.logger import get_logger

logger = get_logger("collector")

T = TypeVar("T")

MAX_ACTION_ROWS = 5
MAX_BUTTONS_PER_ROW = 5

MessageExtractor = Callable[[discord.Message], Union[Optional[T], Awaitable[Optional[T]]]]


class CollectorOutcome(Enum):
    """How a collector finished."""

    MATCHED = "matched"
    INTERACTED = "interacted"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    NOT_STARTED = "not_started"


@dataclass(frozen=True)
class CollectorResult(Generic[T]):
    """Discriminated result of a collector.

    ``value`` holds the extractor's value for ``MATCHED`` and the
    :class:`discord.Interaction` for ``INTERACTED``; it is ``None`` otherwise.
    """

    outcome: CollectorOutcome
    value: Any = None

    @property
    def has_value(self) -> bool:
        return self.outcome in (CollectorOutcome.MATCHED, CollectorOutcome.INTERACTED)

    @property
    def interaction(self) -> Optional[discord.Interaction]:
        if self.outcome is CollectorOutcome.INTERACTED:
            return self.value
        return None


# --------------------------
# Options, one dataclass per mode
# --------------------------
@dataclass(kw_only=True)
class CollectorOptions:
    """Fields shared by every collector.

    ``duration`` is in seconds. ``bot`` is the client whose ``wait_for`` is used.
    """

    bot: discord.Client
    target_channel: discord.abc.Messageable
    target_author: discord.abc.Snowflake
    duration: float


@dataclass(kw_only=True)
class MessageCollectorOptions(CollectorOptions):
    """Options for :func:`start_normal_collector`.

    ``message_options`` are keyword arguments for ``channel.send``; when unset,
    ``old_message`` (if any) is used as the collector's message. A message
    whose content equals ``cancel_flag`` (case-insensitive) cancels the
    collector; ``None`` disables the check.
    """

    message_options: Optional[Dict[str, Any]] = None
    old_message: Optional[discord.Message] = None
    delete_base_message_after_complete: bool = False
    cancel_flag: Optional[str] = None
    delete_response_message: bool = False


@dataclass(kw_only=True)
class EphemeralInteractionOptions(CollectorOptions):
    """Options for :func:`start_interaction_ephemeral_collector`."""

    acknowledge_immediately: bool = True


@dataclass(kw_only=True)
class InteractionCollectorOptions(CollectorOptions):
    """Options for :func:`start_interaction_collector`.

    Deleting the message takes precedence over clearing its components.
    """

    message_options: Optional[Dict[str, Any]] = None
    old_message: Optional[discord.Message] = None
    delete_base_message_after_complete: bool = False
    acknowledge_immediately: bool = True
    clear_interactions_after_complete: bool = False


@dataclass(kw_only=True)
class DoubleCollectorOptions(InteractionCollectorOptions):
    """Options for :func:`start_double_collector`."""

    cancel_flag: Optional[str] = None
    delete_response_message: bool = False


class _CompletionGuard:
    """One-shot resolution and cleanup shared by racing collector branches.

    The first result passed to :meth:`resolve` wins. Later results are still
    recorded so the caller can answer interactions that lost the race.
    """

    def __init__(self, cleanup: Callable[[], Awaitable[None]]) -> None:
        self._cleanup = cleanup
        self._cleaned_up = False
        self.results: List[CollectorResult[Any]] = []

    @property
    def resolved(self) -> bool:
        return bool(self.results)

    @property
    def result(self) -> Optional[CollectorResult[Any]]:
        return self.results[0] if self.results else None

    @property
    def cleaned_up(self) -> bool:
        return self._cleaned_up

    def resolve(self, result: CollectorResult[Any]) -> bool:
        """Record ``result``; returns True only for the winning (first) one."""
        self.results.append(result)
        return len(self.results) == 1

    async def run_cleanup(self) -> bool:
        if self._cleaned_up:
            return False
        self._cleaned_up = True
        await self._cleanup()
        return True


# --------------------------
# Private helpers
# --------------------------
async def _init_send_collector_message(
    options: Union[MessageCollectorOptions, InteractionCollectorOptions],
) -> Optional[discord.Message]:
    """Send the collector's message, or fall back to ``old_message``.

    Any error while sending is logged and swallowed; the caller gets ``None``.
    """
    if options.message_options is not None:
        try:
            return await options.target_channel.send(**options.message_options)
        except Exception as exc:
            logger.warning("Could not send collector message: %s", exc)
            return None
    return options.old_message


def get_custom_id(interaction: discord.Interaction) -> str:
    """Return the custom ID of a component interaction, or an empty string."""
    data = interaction.data or {}
    return str(data.get("custom_id") or "")


def _is_cancel_flag(cancel_flag: Optional[str], content: str) -> bool:
    return bool(cancel_flag) and cancel_flag.lower() == (content or "").lower()


def _message_check(options: CollectorOptions) -> Callable[[discord.Message], bool]:
    author_id = options.target_author.id
    channel_id = options.target_channel.id

    def check(message: discord.Message) -> bool:
        return message.author.id == author_id and message.channel.id == channel_id

    return check


def _component_check(
    options: CollectorOptions,
    *,
    message: Optional[discord.Message] = None,
    unique_identifier: Optional[str] = None,
) -> Callable[[discord.Interaction], bool]:
    author_id = options.target_author.id
    channel_id = options.target_channel.id

    def check(interaction: discord.Interaction) -> bool:
        if interaction.type != discord.InteractionType.component:
            return False
        if interaction.user is None or interaction.user.id != author_id:
            return False
        if message is not None:
            return interaction.message is not None and interaction.message.id == message.id
        if interaction.channel_id != channel_id:
            return False
        return unique_identifier is None or get_custom_id(interaction).startswith(unique_identifier)

    return check


async def _acknowledge(interaction: discord.Interaction) -> None:
    try:
        await interaction.response.defer()
    except (discord.HTTPException, discord.InteractionResponded) as exc:
        logger.warning("Could not acknowledge interaction %s: %s", interaction.id, exc)


async def _apply_extractor(func: MessageExtractor[T], message: discord.Message) -> Optional[T]:
    result = func(message)
    if inspect.isawaitable(result):
        result = await result
    return result


async def _collect_message(
    options: Union[MessageCollectorOptions, DoubleCollectorOptions],
    func: MessageExtractor[T],
) -> CollectorResult[T]:
    """Wait for messages from the target author until one cancels or is accepted.

    Not bounded in time; callers apply ``options.duration``.
    """
    check = _message_check(options)
    while True:
        message = await options.bot.wait_for("message", check=check)
        if options.delete_response_message:
            await safe_delete_message(message)

        if _is_cancel_flag(options.cancel_flag, message.content):
            return CollectorResult(CollectorOutcome.CANCELLED)

        value = await _apply_extractor(func, message)
        if value is None:
            continue
        return CollectorResult(CollectorOutcome.MATCHED, value)


async def _wait_for_component(
    options: InteractionCollectorOptions,
    message: discord.Message,
) -> discord.Interaction:
    return await options.bot.wait_for("interaction", check=_component_check(options, message=message))


async def _collect_component(
    options: InteractionCollectorOptions,
    message: discord.Message,
) -> CollectorResult[Any]:
    interaction = await _wait_for_component(options, message)
    if options.acknowledge_immediately:
        await _acknowledge(interaction)
    return CollectorResult(CollectorOutcome.INTERACTED, interaction)


async def _race_message(
    options: DoubleCollectorOptions,
    func: MessageExtractor[T],
    guard: _CompletionGuard,
) -> None:
    guard.resolve(await _collect_message(options, func))


async def _race_component(
    options: DoubleCollectorOptions,
    message: discord.Message,
    guard: _CompletionGuard,
) -> None:
    # Acknowledging happens after the race so a slow defer cannot lose it.
    interaction = await _wait_for_component(options, message)
    guard.resolve(CollectorResult(CollectorOutcome.INTERACTED, interaction))


async def _finish_owned_message(options: InteractionCollectorOptions, message: discord.Message) -> None:
    if options.delete_base_message_after_complete:
        await safe_delete_message(message)
    elif options.clear_interactions_after_complete:
        await safe_clear_components(message)


# --------------------------
# Public API
# --------------------------
async def start_normal_collector(
    options: MessageCollectorOptions,
    func: MessageExtractor[T],
) -> CollectorResult[T]:
    """
    Wait for one message from the target author that ``func`` accepts.

    ``func`` receives each candidate message and returns the parsed value, or
    ``None`` to keep waiting. It may be a coroutine function.

    Args:
        options: The message collector options.
        func: Extractor applied to each candidate message.

    Returns:
        CollectorResult: ``MATCHED`` with the extracted value, ``CANCELLED`` when
        the cancel flag was sent, ``TIMED_OUT`` after ``options.duration``, or
        ``NOT_STARTED`` if the collector message could not be sent.
    """
    bot_message = await _init_send_collector_message(options)
    if bot_message is None and options.message_options is not None:
        return CollectorResult(CollectorOutcome.NOT_STARTED)

    try:
        return await asyncio.wait_for(_collect_message(options, func), timeout=options.duration)
    except asyncio.TimeoutError:
        return CollectorResult(CollectorOutcome.TIMED_OUT)
    finally:
        if options.delete_base_message_after_complete and bot_message is not None:
            await safe_delete_message(bot_message)


async def start_interaction_ephemeral_collector(
    options: EphemeralInteractionOptions,
    unique_identifier: str,
) -> CollectorResult[Any]:
    """
    Wait for a component interaction without owning a message.

    Use this for ephemeral messages or interaction responses that have no
    message object to bind to. Give every component a custom ID that starts
    with ``unique_identifier`` (``f"{uid}_yes"`` instead of ``"yes"``) so
    concurrent collectors in the same channel do not steal each other's clicks.

    Args:
        options: The collector options.
        unique_identifier: Custom ID prefix of the components to listen to.

    Returns:
        CollectorResult: ``INTERACTED`` with the interaction, or ``TIMED_OUT``.
    """
    check = _component_check(options, unique_identifier=unique_identifier)
    try:
        interaction = await options.bot.wait_for("interaction", check=check, timeout=options.duration)
    except asyncio.TimeoutError:
        return CollectorResult(CollectorOutcome.TIMED_OUT)

    if options.acknowledge_immediately:
        await _acknowledge(interaction)
    return CollectorResult(CollectorOutcome.INTERACTED, interaction)


async def start_interaction_collector(options: InteractionCollectorOptions) -> CollectorResult[Any]:
    """
    Send (or reuse) a message and wait for the target author to use one of its components.

    Returns:
        CollectorResult: ``INTERACTED`` with the interaction, ``TIMED_OUT``, or
        ``NOT_STARTED`` if there is no message to listen on.
    """
    bot_message = await _init_send_collector_message(options)
    if bot_message is None:
        return CollectorResult(CollectorOutcome.NOT_STARTED)

    try:
        return await asyncio.wait_for(_collect_component(options, bot_message), timeout=options.duration)
    except asyncio.TimeoutError:
        return CollectorResult(CollectorOutcome.TIMED_OUT)
    finally:
        await _finish_owned_message(options, bot_message)


async def start_double_collector(
    options: DoubleCollectorOptions,
    func: MessageExtractor[T],
) -> CollectorResult[T]:
    """
    Run a message collector and a component collector against the same message.

    Whichever branch produces a qualifying result first wins and the other is
    cancelled. The winning interaction is acknowledged when
    ``acknowledge_immediately`` is set; a click that arrived but lost is always
    acknowledged. The collector message is cleaned up exactly once, however
    the race ends.

    Args:
        options: The combined collector options.
        func: Extractor applied to each candidate message.

    Returns:
        CollectorResult: ``MATCHED`` or ``CANCELLED`` from the message branch,
        ``INTERACTED`` from the component branch, ``TIMED_OUT``, or
        ``NOT_STARTED`` if the collector message could not be sent.
    """
    bot_message = await _init_send_collector_message(options)
    if bot_message is None:
        return CollectorResult(CollectorOutcome.NOT_STARTED)

    guard = _CompletionGuard(lambda: _finish_owned_message(options, bot_message))
    branches = (
        asyncio.create_task(_race_message(options, func, guard)),
        asyncio.create_task(_race_component(options, bot_message, guard)),
    )

    try:
        done, _ = await asyncio.wait(branches, timeout=options.duration, return_when=asyncio.FIRST_COMPLETED)
        if not guard.resolved:
            for task in done:
                # Only a branch that raised finishes without resolving.
                task.result()
            guard.resolve(CollectorResult(CollectorOutcome.TIMED_OUT))
        return guard.result
    finally:
        for task in branches:
            if not task.done():
                task.cancel()
        await asyncio.gather(*branches, return_exceptions=True)

        for index, outcome in enumerate(guard.results):
            if outcome.interaction is not None and (index > 0 or options.acknowledge_immediately):
                await _acknowledge(outcome.interaction)
        await guard.run_cleanup()


# --------------------------
# Component layout
# --------------------------
def get_action_rows_from_components(components: Sequence[discord.ui.Item]) -> List[List[discord.ui.Item]]:
    """
    Partition components into action rows within Discord's limits.

    Select menus take a whole row each (at most ``MAX_ACTION_ROWS``). Buttons
    fill the remaining rows, ``MAX_BUTTONS_PER_ROW`` per row. Components that
    do not fit are dropped.

    Args:
        components: Buttons and select menus, in display order.

    Returns:
        List[List[discord.ui.Item]]: The rows, select menus first.
    """
    rows: List[List[discord.ui.Item]] = []

    select_menus = [component for component in components if isinstance(component, discord.ui.Select)]
    for menu in select_menus[:MAX_ACTION_ROWS]:
        rows.append([menu])

    buttons = [component for component in components if isinstance(component, discord.ui.Button)]
    button_capacity = MAX_BUTTONS_PER_ROW * (MAX_ACTION_ROWS - len(rows))
    kept_buttons = buttons[:button_capacity]
    for start in range(0, len(kept_buttons), MAX_BUTTONS_PER_ROW):
        rows.append(kept_buttons[start:start + MAX_BUTTONS_PER_ROW])

    return rows


def build_view_from_components(
    components: Sequence[discord.ui.Item],
    *,
    timeout: Optional[float] = None,
) -> discord.ui.View:
    """Lay components out with :func:`get_action_rows_from_components` and wrap them in a view."""
    view = discord.ui.View(timeout=timeout)
    for row_index, row in enumerate(get_action_rows_from_components(components)):
        for item in row:
            item.row = row_index
            view.add_item(item)
    return view
