"""
Configuration management for enrollbot.

- **app_configuration.py**: YAML configuration loader for global settings.
  Provides access to production mode, the bot owner allow-list, command
  registration guilds, enrollment data sources and collector timeouts. Falls
  back gracefully on missing or malformed config files.

- **enroll_data_settings.py**: Typed accessors for the ``enroll_data`` section.
"""
