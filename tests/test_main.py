import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

import enrollbot.main as main_module
from enrollbot.configuration.app_configuration import AppConfig

SAMPLE_DATA = Path(__file__).parent.parent / "data" / "cached_sections.json"


def test_build_intents_enables_message_content():
    intents = main_module.build_intents()

    assert intents.message_content is True
    assert intents.guilds is True
    assert intents.messages is True


def test_resolve_base_dir_prefers_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ENROLLBOT_HOME", str(tmp_path))

    assert main_module.resolve_base_dir() == tmp_path.resolve()


def test_resolve_base_dir_defaults_to_repository_root(monkeypatch):
    monkeypatch.delenv("ENROLLBOT_HOME", raising=False)

    assert (main_module.resolve_base_dir() / "src" / "enrollbot").is_dir()


def test_load_environment_returns_token(monkeypatch):
    monkeypatch.setattr(main_module, "load_dotenv", MagicMock())
    monkeypatch.setenv("DISCORD_BOT_TOKEN", "token-123")

    assert main_module.load_environment() == "token-123"


def test_load_environment_exits_without_token(monkeypatch, caplog):
    monkeypatch.setattr(main_module, "load_dotenv", MagicMock())
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)

    with pytest.raises(SystemExit) as exc_info:
        main_module.load_environment()

    assert exc_info.value.code == 1


@pytest.mark.asyncio
async def test_create_bot_wires_commands_and_cogs(tmp_path):
    config_path = tmp_path / "app_config.yml"
    config_path.write_text(
        "is_prod: true\n"
        "bot_owner_ids: [1]\n"
        "enroll_data:\n"
        "  terms: [SP22]\n"
        "  cached_data_term: SP22\n"
        f"  cached_data_path: '{SAMPLE_DATA}'\n",
        encoding="utf-8",
    )

    bot = main_module.create_bot(AppConfig(config_path))

    assert isinstance(bot, discord.Bot)
    assert set(bot.cogs) == {"EventsListenerCog", "InteractionListenerCog"}
    events_cog = bot.get_cog("EventsListenerCog")
    assert [payload["name"] for payload in events_cog.registry.payloads()] == ["help", "getoverall", "lookupcached"]
    assert events_cog.graph_index.terms == ["SP22"]
    dispatcher = bot.get_cog("InteractionListenerCog").dispatcher
    assert dispatcher.is_prod is True
    assert dispatcher.is_bot_owner(1)


@pytest.mark.asyncio
async def test_async_main_reports_login_failure(monkeypatch):
    bot = MagicMock()
    bot.start = AsyncMock(side_effect=discord.LoginFailure("bad token"))
    bot.is_closed.return_value = False
    bot.close = AsyncMock()
    monkeypatch.setattr(main_module, "load_environment", lambda: "token")
    monkeypatch.setattr(main_module, "create_bot", lambda: bot)

    assert await main_module.async_main() == 1
    bot.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_async_main_returns_zero_after_clean_shutdown(monkeypatch):
    bot = MagicMock()
    bot.start = AsyncMock()
    bot.is_closed.return_value = True
    bot.close = AsyncMock()
    monkeypatch.setattr(main_module, "load_environment", lambda: "token")
    monkeypatch.setattr(main_module, "create_bot", lambda: bot)

    assert await main_module.async_main() == 0
    bot.close.assert_not_called()


@pytest.mark.asyncio
async def test_async_main_fails_when_bot_cannot_be_created(monkeypatch, caplog):
    monkeypatch.setattr(main_module, "load_environment", lambda: "token")
    monkeypatch.setattr(main_module, "create_bot", MagicMock(side_effect=RuntimeError("broken config")))

    assert await main_module.async_main() == 1


@pytest.mark.parametrize("error,expected", [
    (KeyboardInterrupt(), 0),
    (SystemExit(2), 2),
    (SystemExit(None), 1),
    (SystemExit("3"), 3),
    (SystemExit("not a number"), 1),
    (RuntimeError("boom"), 1),
])
def test_main_maps_exit_codes(monkeypatch, error, expected):
    monkeypatch.setattr(main_module, "async_main", MagicMock(side_effect=error))

    assert main_module.main() == expected


def test_main_runs_async_main(monkeypatch):
    monkeypatch.setattr(main_module, "async_main", AsyncMock(return_value=0))

    assert main_module.main() == 0
