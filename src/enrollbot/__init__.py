"""
enrollbot - Course Enrollment Lookup Bot for Discord

enrollbot exposes slash commands that look up university course enrollment
data and render cached section information inside Discord.

Core Components:

- **Dispatcher**: Resolves application-command interactions to registered
  commands and enforces development mode, cooldowns, guild-only and permission
  gates before running the command body
- **Commands**: ``help``, ``getoverall`` (overall enrollment graphs per term)
  and ``lookupcached`` (interactive view of cached section data)
- **Collector Utility**: Awaitable helpers that wait for a follow-up message,
  a component click, or whichever of the two arrives first
- **Enrollment Data**: Cached section data loaded from disk and overall
  enrollment graph listings fetched over HTTP

Usage:
    from enrollbot.main import main
    main()
"""
