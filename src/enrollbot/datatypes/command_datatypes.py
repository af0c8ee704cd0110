"""
Command descriptor and invocation datatypes.

This module defines the immutable description of a slash command
(:class:`CommandInfo` and its :class:`ArgumentInfo` entries), the structured
outcome of a permission check (:class:`PermissionCheckResult`) and the
per-invocation :class:`CommandContext` handed to command bodies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

import discord

ArgumentType = discord.SlashCommandOptionType

# Discord rejects command and option descriptions longer than this.
MAX_DESCRIPTION_LENGTH = 100


def _validate_permission_names(names: Tuple[str, ...]) -> None:
    unknown = [name for name in names if name not in discord.Permissions.VALID_FLAGS]
    if unknown:
        raise ValueError(f"Unknown permission name(s): {', '.join(unknown)}")


def _truncate_description(text: str) -> str:
    if len(text) <= MAX_DESCRIPTION_LENGTH:
        return text
    return text[: MAX_DESCRIPTION_LENGTH - 3] + "..."


def humanize_permission(name: str) -> str:
    """Turn a permission attribute name such as ``manage_guild`` into ``Manage Guild``."""
    return name.replace("_", " ").title()


@dataclass(frozen=True)
class ArgumentInfo:
    """A single slash command argument."""

    display_name: str
    arg_name: str
    description: str
    type: ArgumentType
    pretty_type: str
    required: bool
    example: Tuple[str, ...] = ()
    string_choices: Tuple[Tuple[str, str], ...] = ()

    def to_payload(self) -> Dict[str, Any]:
        """Render the Discord application command option object."""
        payload: Dict[str, Any] = {
            "type": self.type.value,
            "name": self.arg_name,
            "description": _truncate_description(self.description),
            "required": self.required,
        }
        if self.string_choices:
            payload["choices"] = [{"name": name, "value": value} for name, value in self.string_choices]
        return payload


@dataclass(frozen=True)
class CommandInfo:
    """Immutable descriptor of a command.

    ``general_permissions`` are user permissions with any-of semantics (having
    one of them is enough); ``bot_permissions`` must all be held by the bot.
    ``command_cooldown`` is expressed in seconds.
    """

    cmd_code: str
    formal_command_name: str
    bot_command_name: str
    description: str
    argument_info: Tuple[ArgumentInfo, ...] = ()
    general_permissions: Tuple[str, ...] = ()
    bot_permissions: Tuple[str, ...] = ()
    command_cooldown: float = 0.0
    guild_only: bool = False
    bot_owner_only: bool = False

    def __post_init__(self) -> None:
        _validate_permission_names(self.general_permissions)
        _validate_permission_names(self.bot_permissions)
        if self.command_cooldown < 0:
            raise ValueError("command_cooldown cannot be negative")

    def to_payload(self) -> Dict[str, Any]:
        """Render the Discord application command object used for registration."""
        return {
            "type": 1,
            "name": self.bot_command_name,
            "description": _truncate_description(self.description),
            "options": [argument.to_payload() for argument in self.argument_info],
            "dm_permission": not self.guild_only,
        }


@dataclass(frozen=True)
class PermissionCheckResult:
    """Outcome of evaluating whether a caller may run a command."""

    can_run: bool
    has_admin: bool
    missing_user_perms: Tuple[str, ...] = ()
    missing_bot_perms: Tuple[str, ...] = ()
    reason: Optional[str] = None


@dataclass
class CommandContext:
    """Per-invocation bundle passed to :meth:`BaseCommand.run`."""

    user: Union[discord.User, discord.Member]
    guild: Optional[discord.Guild]
    channel: Any
    member: Optional[discord.Member]
    interaction: discord.Interaction
    bot: discord.Client
    options: Dict[str, Any] = field(default_factory=dict)
    is_bot_owner: bool = False

    def get_option(self, name: str, default: Any = None) -> Any:
        return self.options.get(name, default)


def parse_interaction_options(data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Flatten the top-level options of an application command payload into ``name -> value``."""
    if not data:
        return {}
    options: List[Dict[str, Any]] = data.get("options") or []
    return {option["name"]: option.get("value") for option in options if "name" in option}
