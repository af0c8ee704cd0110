"""
Utility functions and helpers for enrollbot.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Suppresses noise from
  Discord internals and networking libraries.

- **collector.py**: Awaitable collectors that wait for follow-up messages and
  component interactions, plus action-row packing for components.

- **discord_utils.py**: Embed and message helpers shared by the commands.
"""
