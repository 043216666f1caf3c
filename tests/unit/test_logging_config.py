"""Unit tests for cbox/logging_config.py."""

import logging
import sys

from cbox.logging_config import configure_logging, get_logger


class TestConfigureLogging:
    def test_quiet_by_default(self):
        configure_logging()
        assert logging.getLogger("cbox").level == logging.WARNING

    def test_verbose_enables_debug(self):
        configure_logging(verbose=True)
        assert logging.getLogger("cbox").level == logging.DEBUG

    def test_single_stderr_handler(self):
        configure_logging()
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr

    def test_prefix(self):
        configure_logging()
        record = logging.LogRecord("cbox.test", logging.WARNING, __file__, 1, "hello", None, None)
        formatted = logging.getLogger().handlers[0].format(record)
        assert formatted == "cbox: WARNING | cbox.test | hello"

    def test_announces_verbose_mode(self, capsys):
        configure_logging(verbose=True)
        assert "Verbose mode enabled" in capsys.readouterr().err


class TestGetLogger:
    def test_returns_named_logger(self):
        assert get_logger("cbox.sandbox").name == "cbox.sandbox"
