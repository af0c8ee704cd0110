"""
Base class shared by every slash command.

A command owns its immutable :class:`CommandInfo` and its cooldown table.
Permission evaluation is a pure function of the command requirements and the
permissions held by the caller and the bot, so it can be reused by ``/help``
to list only runnable commands.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

import discord

from enrollbot.datatypes.command_datatypes import CommandContext, CommandInfo, PermissionCheckResult

OWNER_ONLY_REASON = "This command can only be used by the bot owners."


class CommandCooldown:
    """Per-user cooldown table for a single command.

    Maps a user ID to the clock time at which the user may run the command
    again. Expired entries are dropped on read.
    """

    def __init__(self, duration_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.duration_seconds = duration_seconds
        self._clock = clock
        self._expires_at: Dict[int, float] = {}

    def remaining_for(self, user_id: int) -> float:
        """Return the seconds left before ``user_id`` may run the command, or 0."""
        expires_at = self._expires_at.get(user_id)
        if expires_at is None:
            return 0.0

        remaining = expires_at - self._clock()
        if remaining <= 0:
            del self._expires_at[user_id]
            return 0.0
        return remaining

    def add(self, user_id: int) -> None:
        """Start (or restart) the cooldown for ``user_id``."""
        if self.duration_seconds <= 0:
            return
        self._expires_at[user_id] = self._clock() + self.duration_seconds

    def clear(self, user_id: int) -> None:
        self._expires_at.pop(user_id, None)


def evaluate_permissions(
    info: CommandInfo,
    *,
    is_bot_owner: bool,
    in_guild: bool,
    user_permissions: Optional[discord.Permissions],
    bot_permissions: Optional[discord.Permissions],
) -> PermissionCheckResult:
    """
    Decide whether a caller may run the command described by ``info``.

    User permissions use any-of semantics and are waived for administrators
    and bot owners. Bot permissions use all-of semantics. Outside a guild
    there are no permissions to check, so only the owner-only flag applies.

    Args:
        info: The command descriptor.
        is_bot_owner: Whether the caller is on the bot owner allow-list.
        in_guild: Whether the command was invoked inside a guild.
        user_permissions: The caller's guild permissions, if known.
        bot_permissions: The bot's guild permissions, if known.

    Returns:
        PermissionCheckResult: The structured result; this function has no side effects.
    """
    has_admin = bool(user_permissions is not None and user_permissions.administrator)

    if info.bot_owner_only and not is_bot_owner:
        return PermissionCheckResult(can_run=False, has_admin=has_admin, reason=OWNER_ONLY_REASON)

    if not in_guild:
        return PermissionCheckResult(can_run=True, has_admin=has_admin)

    missing_user_perms: tuple[str, ...] = ()
    if info.general_permissions and not (has_admin or is_bot_owner):
        held_any = user_permissions is not None and any(
            getattr(user_permissions, name) for name in info.general_permissions
        )
        if not held_any:
            missing_user_perms = info.general_permissions

    missing_bot_perms = tuple(
        name for name in info.bot_permissions
        if bot_permissions is None or not getattr(bot_permissions, name)
    )

    return PermissionCheckResult(
        can_run=not missing_user_perms and not missing_bot_perms,
        has_admin=has_admin,
        missing_user_perms=missing_user_perms,
        missing_bot_perms=missing_bot_perms,
    )


class BaseCommand(ABC):
    """A slash command: descriptor, cooldown table and body."""

    def __init__(self, command_info: CommandInfo, *, clock: Callable[[], float] = time.monotonic) -> None:
        self.command_info = command_info
        self.cooldown = CommandCooldown(command_info.command_cooldown, clock)

    @property
    def name(self) -> str:
        return self.command_info.bot_command_name

    def matches(self, name: str) -> bool:
        return self.command_info.bot_command_name == name

    def check_cooldown_for(self, user_id: int) -> float:
        return self.cooldown.remaining_for(user_id)

    def add_to_cooldown(self, user_id: int) -> None:
        self.cooldown.add(user_id)

    def has_permission_to_run(self, ctx: CommandContext) -> PermissionCheckResult:
        """Evaluate :func:`evaluate_permissions` for the caller and bot in ``ctx``."""
        user_permissions: Optional[discord.Permissions] = None
        bot_permissions: Optional[discord.Permissions] = None
        if ctx.guild is not None:
            if ctx.member is not None:
                user_permissions = ctx.member.guild_permissions
            bot_member = ctx.guild.me
            if bot_member is not None:
                bot_permissions = bot_member.guild_permissions

        return evaluate_permissions(
            self.command_info,
            is_bot_owner=ctx.is_bot_owner,
            in_guild=ctx.guild is not None,
            user_permissions=user_permissions,
            bot_permissions=bot_permissions,
        )

    @abstractmethod
    async def run(self, ctx: CommandContext) -> int:
        """Run the command body. Returns 0 on success and -1 when the input was rejected."""
