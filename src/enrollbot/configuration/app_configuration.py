from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, List
import yaml

from enrollbot.configuration.enroll_data_settings import EnrollDataSettings
from enrollbot.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_PAGE_TIMEOUT_SECONDS = 120.0


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches the contents of ``./config/app_config.yml``, exposes
    dictionary-like access helpers, and wraps the enrollment data section in
    :class:`EnrollDataSettings`.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if not isinstance(data, dict):
                    logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def is_prod(self) -> bool:
        """Whether the bot runs in production mode.

        Outside production only the bot owners may run commands.
        """
        return bool(self._data.get("is_prod", False))

    @property
    def bot_owner_ids(self) -> List[int]:
        """Return the operator allow-list as integer user IDs.

        Entries that cannot be converted to integers are skipped with a warning.
        """
        owners: List[int] = []
        for raw in self._data.get("bot_owner_ids") or []:
            try:
                owners.append(int(raw))
            except (TypeError, ValueError):
                logger.warning("[APP CONFIGURATION] Ignoring invalid bot owner id %r", raw)
        return owners

    @property
    def command_guild_ids(self) -> List[int]:
        """Guilds to register commands in; empty means global registration."""
        guild_ids: List[int] = []
        for raw in self._data.get("command_guild_ids") or []:
            try:
                guild_ids.append(int(raw))
            except (TypeError, ValueError):
                logger.warning("[APP CONFIGURATION] Ignoring invalid guild id %r", raw)
        return guild_ids

    @property
    def enroll_data(self) -> EnrollDataSettings:
        settings = self._data.get("enroll_data", {})
        if not isinstance(settings, dict):
            settings = {}
        return EnrollDataSettings(settings)

    @property
    def page_timeout_seconds(self) -> float:
        """How long an interactive page waits for a button press, in seconds."""
        collector_config = self._data.get("collector", {})
        if isinstance(collector_config, dict):
            return float(collector_config.get("page_timeout_seconds", DEFAULT_PAGE_TIMEOUT_SECONDS))
        return DEFAULT_PAGE_TIMEOUT_SECONDS


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
