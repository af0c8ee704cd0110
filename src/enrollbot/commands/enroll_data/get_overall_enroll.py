"""``/getoverall``: show the overall enrollment graph of a course."""

from __future__ import annotations

import discord

from enrollbot.commands.base_command import BaseCommand
from enrollbot.datatypes.command_datatypes import ArgumentInfo, ArgumentType, CommandContext, CommandInfo
from enrollbot.datatypes.course_datatypes import EnrollDataError
from enrollbot.services.enroll_data_service import OverallGraphIndex, parse_course_subj_code
from enrollbot.util.discord_utils import generate_blank_embed
from enrollbot.util.logger import get_logger

logger = get_logger("get_overall_enroll")


class GetOverallEnroll(BaseCommand):
    """Gets the enrollment chart for all sections for a particular course."""

    def __init__(self, graph_index: OverallGraphIndex) -> None:
        super().__init__(CommandInfo(
            cmd_code="GET_OVERALL_ENROLL",
            formal_command_name="Get Overall Enrollment Graph",
            bot_command_name="getoverall",
            description="Gets the enrollment chart for all sections for a particular course.",
            argument_info=(
                ArgumentInfo(
                    display_name="Term",
                    arg_name="term",
                    description="The term to get the graph for.",
                    type=ArgumentType.string,
                    pretty_type="String",
                    required=True,
                    example=("SP22",),
                    string_choices=tuple((term, term) for term in graph_index.terms),
                ),
                ArgumentInfo(
                    display_name="Course & Subject Code",
                    arg_name="course_subj_num",
                    description="The course subject code.",
                    type=ArgumentType.string,
                    pretty_type="String",
                    required=True,
                    example=("CSE 100", "MATH100A"),
                ),
            ),
            command_cooldown=3,
        ))
        self.graph_index = graph_index

    async def reply(self, ctx: CommandContext, *, deferred: bool, ephemeral: bool = False, **kwargs) -> None:
        """Answer the command, whether or not the interaction was deferred.

        An ephemeral answer to a deferred interaction replaces the public
        "thinking" placeholder with an ephemeral follow-up.
        """
        interaction = ctx.interaction
        if not deferred:
            await interaction.response.send_message(ephemeral=ephemeral, **kwargs)
        elif ephemeral:
            await interaction.delete_original_response()
            await interaction.followup.send(ephemeral=True, **kwargs)
        else:
            await interaction.edit_original_response(**kwargs)

    async def run(self, ctx: CommandContext) -> int:
        term = str(ctx.get_option("term", ""))
        code = str(ctx.get_option("course_subj_num", ""))

        if term not in self.graph_index.terms:
            await self.reply(
                ctx,
                deferred=False,
                ephemeral=True,
                content=f"The term, **`{term}`**, could not be found. Try again.",
            )
            return -1

        # A listing fetch can outlast Discord's initial response window.
        deferred = not self.graph_index.is_cached(term)
        if deferred:
            await ctx.interaction.response.defer()

        try:
            graphs = await self.graph_index.get_graphs(term) or []
        except EnrollDataError as exc:
            logger.warning("Graph listing unavailable for term %s: %s", term, exc)
            await self.reply(
                ctx,
                deferred=deferred,
                ephemeral=True,
                content=f"The graphs for term **`{term}`** could not be loaded right now. Try again later.",
            )
            return -1

        parsed_code = parse_course_subj_code(code)
        graph = next((graph for graph in graphs if graph.course_code == parsed_code), None)
        if graph is None:
            await self.reply(
                ctx,
                deferred=deferred,
                ephemeral=True,
                content=f"The course, **`{parsed_code}`**, (term **`{term}`**) could not be found. Try again.",
            )
            return -1

        embed = generate_blank_embed(ctx.user, discord.Color.blurple())
        embed.set_image(url=graph.download_url)
        await self.reply(
            ctx,
            deferred=deferred,
            content=f"Course **`{parsed_code}`** (Term **`{term}`**)",
            embed=embed,
        )
        return 0
