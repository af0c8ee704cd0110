from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from enrollbot.commands.base_command import BaseCommand
from enrollbot.util.logger import get_logger

logger = get_logger("command_registry")


class CommandRegistry:
    """Name-indexed collection of commands, grouped by display category."""

    def __init__(self) -> None:
        self._by_name: Dict[str, BaseCommand] = {}
        self._by_category: Dict[str, List[BaseCommand]] = {}

    def register(self, category: str, command: BaseCommand) -> None:
        """Add ``command`` under ``category``.

        Raises:
            ValueError: If a command with the same name is already registered.
        """
        if command.name in self._by_name:
            raise ValueError(f"Command '{command.name}' is already registered")

        self._by_name[command.name] = command
        self._by_category.setdefault(category, []).append(command)
        logger.debug("Registered command '%s' in category '%s'", command.name, category)

    def get(self, name: str) -> Optional[BaseCommand]:
        return self._by_name.get(name)

    def categories(self) -> Dict[str, List[BaseCommand]]:
        """Return a copy of the category -> commands mapping, in registration order."""
        return {category: list(commands) for category, commands in self._by_category.items()}

    def payloads(self) -> List[Dict[str, Any]]:
        """Application command payloads for every registered command."""
        return [command.command_info.to_payload() for command in self._by_name.values()]

    def __len__(self) -> int:
        return len(self._by_name)

    def __iter__(self) -> Iterator[BaseCommand]:
        return iter(self._by_name.values())
