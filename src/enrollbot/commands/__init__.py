"""
Slash commands of enrollbot.

Commands are plain :class:`BaseCommand` subclasses collected in a
:class:`CommandRegistry`; the dispatcher looks them up by name.
"""

from enrollbot.commands.base_command import BaseCommand
from enrollbot.commands.enroll_data.get_overall_enroll import GetOverallEnroll
from enrollbot.commands.enroll_data.lookup_cached import LookupCached
from enrollbot.commands.general.help import Help
from enrollbot.commands.registry import CommandRegistry
from enrollbot.services.enroll_data_service import OverallGraphIndex, SectionCache

GENERAL_CATEGORY = "General"
ENROLL_DATA_CATEGORY = "Enroll Data"


def build_command_registry(
    section_cache: SectionCache,
    graph_index: OverallGraphIndex,
    *,
    page_timeout: float,
) -> CommandRegistry:
    """Create the registry holding every command of the bot."""
    registry = CommandRegistry()
    registry.register(GENERAL_CATEGORY, Help(registry))
    registry.register(ENROLL_DATA_CATEGORY, GetOverallEnroll(graph_index))
    registry.register(ENROLL_DATA_CATEGORY, LookupCached(section_cache, page_timeout=page_timeout))
    return registry


__all__ = ["BaseCommand", "CommandRegistry", "build_command_registry"]
