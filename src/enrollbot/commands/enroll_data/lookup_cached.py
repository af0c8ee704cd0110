"""``/lookupcached``: browse the cached section data of the active term."""

from __future__ import annotations

from enrollbot.commands.base_command import BaseCommand
from enrollbot.commands.enroll_data.section_display import display_interactive_webreg_data
from enrollbot.datatypes.command_datatypes import ArgumentInfo, ArgumentType, CommandContext, CommandInfo
from enrollbot.services.enroll_data_service import SectionCache, parse_course_subj_code


class LookupCached(BaseCommand):
    """Looks up course data from the cache of the current active term."""

    def __init__(self, section_cache: SectionCache, *, page_timeout: float) -> None:
        super().__init__(CommandInfo(
            cmd_code="LOOKUP_CACHED",
            formal_command_name="Lookup Cached Data",
            bot_command_name="lookupcached",
            description="Looks up course data from the cache. Only covers the current active term.",
            argument_info=(
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
            command_cooldown=5,
        ))
        self.section_cache = section_cache
        self.page_timeout = page_timeout

    async def run(self, ctx: CommandContext) -> int:
        code = str(ctx.get_option("course_subj_num", ""))
        parsed_code = parse_course_subj_code(code)
        if " " not in parsed_code:
            await ctx.interaction.response.send_message(
                content=f"Your input, `{code}`, is improperly formatted. It should look like `SUBJ XXX`.",
                ephemeral=True,
            )
            return -1

        await ctx.interaction.response.defer()
        sections = self.section_cache.find(parsed_code)
        if not sections:
            await ctx.interaction.edit_original_response(
                content=f"No data was found for **`{parsed_code}`** (Term: `{self.section_cache.term}`)."
            )
            return 0

        await display_interactive_webreg_data(
            ctx, sections, self.section_cache.term, parsed_code, timeout=self.page_timeout
        )
        return 0
