import logging
from unittest.mock import patch

import pytest

from enrollbot.util import logger as logger_module
from enrollbot.util.logger import (
    ColorFormatter,
    PromptToolkitHandler,
    get_log_filepath,
    get_logger,
    handle_exception,
    setup_logger,
    should_use_color,
)


class DummyStream:
    def __init__(self, tty=True):
        self.tty = tty

    def write(self, msg):
        pass

    def isatty(self):
        return self.tty


def test_get_logger_returns_logger():
    logger = get_logger("test_logger")
    assert isinstance(logger, logging.Logger)
    assert any(isinstance(h, PromptToolkitHandler) for h in logger.handlers)


def test_setup_logger_idempotent():
    logger1 = setup_logger("test_logger_idem")
    logger2 = setup_logger("test_logger_idem")
    assert logger1 is logger2
    assert len(logger1.handlers) == 2
    assert logger1.propagate is False


def test_console_handler_is_info_and_file_handler_is_debug():
    logger = setup_logger("test_logger_levels")
    levels = {type(h).__name__: h.level for h in logger.handlers}
    assert levels["PromptToolkitHandler"] == logging.INFO
    assert levels["RotatingFileHandler"] == logging.DEBUG


def test_color_formatter_applies_color():
    formatter = ColorFormatter("%(levelname)s %(message)s")
    record = logging.LogRecord("test", logging.ERROR, "", 0, "error occurred", None, None)
    formatted = formatter.format(record)
    assert formatted.startswith("\033[31m")
    assert formatted.endswith("\033[0m")
    assert "error occurred" in formatted


def test_color_formatter_leaves_unknown_levels_alone():
    formatter = ColorFormatter("%(message)s")
    record = logging.LogRecord("test", 5, "", 0, "custom level", None, None)
    assert formatter.format(record) == "custom level"


def test_prompt_toolkit_handler_prints_formatted_record():
    handler = PromptToolkitHandler(formatter=logging.Formatter("%(message)s"))
    record = logging.LogRecord("test", logging.INFO, "", 0, "hello", None, None)
    with patch.object(logger_module, "print_formatted_text") as printer:
        handler.emit(record)
    printer.assert_called_once()
    assert printer.call_args.args[0].value == "hello"


@pytest.mark.parametrize("tty", [True, False])
def test_should_use_color_follows_stderr(monkeypatch, tty):
    monkeypatch.setattr("sys.stderr", DummyStream(tty))
    assert should_use_color() is tty


def test_get_log_filepath_is_cached():
    path = get_log_filepath()
    assert path.parent.exists()
    assert path.suffix == ".log"
    assert get_log_filepath() == path


def test_handle_exception_logs_error(caplog):
    class DummyException(Exception):
        pass

    with caplog.at_level(logging.ERROR):
        try:
            raise DummyException("fail")
        except DummyException as exc:
            handle_exception(DummyException, exc, exc.__traceback__)
    assert any("Uncaught exception" in r.message for r in caplog.records)


def test_handle_exception_defers_keyboard_interrupt(monkeypatch):
    calls = []
    monkeypatch.setattr("sys.__excepthook__", lambda *args: calls.append(args))
    handle_exception(KeyboardInterrupt, KeyboardInterrupt(), None)
    assert len(calls) == 1


def test_noisy_loggers_are_silenced():
    assert logging.getLogger("discord.http").level == logging.ERROR
