"""
Interactive, paginated display of course sections.

Each section gets its own page. Previous/Next/Stop buttons are read with an
ephemeral component collector keyed on the invoking interaction's ID, so two
people browsing in the same channel never drive each other's pages.
"""

from __future__ import annotations

from typing import Sequence

import discord

from enrollbot.datatypes.command_datatypes import CommandContext
from enrollbot.datatypes.course_datatypes import CourseSection
from enrollbot.util.collector import (
    CollectorOutcome,
    EphemeralInteractionOptions,
    build_view_from_components,
    get_custom_id,
    start_interaction_ephemeral_collector,
)
from enrollbot.util.discord_utils import codify_string, generate_blank_embed
from enrollbot.util.logger import get_logger

logger = get_logger("section_display")


def build_section_embed(
    user: discord.abc.User,
    section: CourseSection,
    term: str,
    course_code: str,
    page: int,
    page_count: int,
) -> discord.Embed:
    """Render one section as an embed page."""
    embed = generate_blank_embed(user, discord.Color.dark_green())
    embed.title = f"{course_code} (Term: {term})"
    embed.description = f"Section **`{section.section_code}`** (ID `{section.section_id}`)"
    embed.add_field(
        name="Instructor(s)",
        value=codify_string(", ".join(section.all_instructors) or "Staff"),
        inline=False,
    )
    embed.add_field(name="Enrolled", value=codify_string(f"{section.enrolled_ct}/{section.total_seats}"), inline=True)
    embed.add_field(name="Available", value=codify_string(str(section.available_seats)), inline=True)
    embed.add_field(name="Waitlisted", value=codify_string(str(section.waitlist_ct)), inline=True)
    embed.add_field(
        name="Meetings",
        value=codify_string("\n".join(meeting.display() for meeting in section.meetings) or "N/A"),
        inline=False,
    )
    embed.set_footer(text=f"Page {page + 1}/{page_count}")
    return embed


def build_navigation_components(unique_id: str) -> list[discord.ui.Item]:
    return [
        discord.ui.Button(label="Previous", custom_id=f"{unique_id}_back", style=discord.ButtonStyle.primary),
        discord.ui.Button(label="Stop", custom_id=f"{unique_id}_stop", style=discord.ButtonStyle.danger),
        discord.ui.Button(label="Next", custom_id=f"{unique_id}_next", style=discord.ButtonStyle.primary),
    ]


async def display_interactive_webreg_data(
    ctx: CommandContext,
    sections: Sequence[CourseSection],
    term: str,
    course_code: str,
    *,
    timeout: float,
) -> None:
    """
    Show ``sections`` in the (already deferred) response of ``ctx.interaction``.

    A single section is shown without buttons. Otherwise the buttons stay
    active until the caller presses Stop or ``timeout`` seconds pass without a
    press, after which they are removed.

    Args:
        ctx: The command context; its interaction must have been deferred.
        sections: The sections to page through.
        term: The term the data belongs to.
        course_code: The normalized course code, used in the titles.
        timeout: Seconds to wait for each button press.
    """
    pages = [
        build_section_embed(ctx.user, section, term, course_code, index, len(sections))
        for index, section in enumerate(sections)
    ]
    if len(pages) == 1:
        await ctx.interaction.edit_original_response(embed=pages[0])
        return

    unique_id = str(ctx.interaction.id)
    view = build_view_from_components(build_navigation_components(unique_id))
    await ctx.interaction.edit_original_response(embed=pages[0], view=view)

    page = 0
    # Each press is answered by editing through the press itself, which
    # acknowledges it in the same request and re-arms the wait sooner.
    options = EphemeralInteractionOptions(
        bot=ctx.bot,
        target_channel=ctx.channel,
        target_author=ctx.user,
        duration=timeout,
        acknowledge_immediately=False,
    )
    stop_press = None
    while True:
        result = await start_interaction_ephemeral_collector(options, unique_id)
        if result.outcome is not CollectorOutcome.INTERACTED:
            break

        press = result.interaction
        custom_id = get_custom_id(press)
        if custom_id == f"{unique_id}_stop":
            stop_press = press
            break
        if custom_id == f"{unique_id}_back":
            page = (page - 1) % len(pages)
        elif custom_id == f"{unique_id}_next":
            page = (page + 1) % len(pages)

        try:
            await press.response.edit_message(embed=pages[page])
        except discord.HTTPException as exc:
            logger.warning("Could not turn to page %d: %s", page + 1, exc)

    view.stop()
    try:
        if stop_press is not None:
            await stop_press.response.edit_message(embed=pages[page], view=None)
        else:
            await ctx.interaction.edit_original_response(embed=pages[page], view=None)
    except discord.HTTPException as exc:
        logger.warning("Could not remove navigation buttons: %s", exc)
