"""Tests for logging.py - logger configuration."""

import io
import logging
import sys

from clipnote.logging import ColoredFormatter, get_logger, setup_logging


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_levels(self):
        assert setup_logging().level == logging.INFO
        assert setup_logging(verbose=True).level == logging.DEBUG
        assert setup_logging(quiet=True).level == logging.ERROR

    def test_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file(self, temp_dir):
        log_file = temp_dir / "run.log"
        logger = setup_logging(quiet=True, log_file=str(log_file))
        get_logger("clipnote.library").debug("cache dropped")
        assert len(logger.handlers) == 2
        assert "cache dropped" not in log_file.read_text()
        get_logger("clipnote.library").error("save failed")
        assert "clipnote.library: save failed" in log_file.read_text()


class TestGetLogger:
    """Tests for module loggers."""

    def test_namespaced(self):
        assert get_logger("clipnote.timeline").name == "clipnote.timeline"
        assert get_logger("timeline").name == "clipnote.timeline"


class TestColoredFormatter:
    """Tests for ColoredFormatter."""

    def test_plain_when_disabled(self):
        formatter = ColoredFormatter("%(levelname)s: %(message)s", use_colors=False)
        record = logging.LogRecord("clipnote", logging.WARNING, __file__, 1, "hi", None, None)
        assert formatter.format(record) == "WARNING: hi"

    def test_record_not_mutated(self, monkeypatch):
        class Terminal(io.StringIO):
            def isatty(self):
                return True

        monkeypatch.setattr(sys, "stderr", Terminal())
        formatter = ColoredFormatter("%(levelname)s: %(message)s")
        record = logging.LogRecord("clipnote", logging.ERROR, __file__, 1, "boom", None, None)
        assert "\033[31m" in formatter.format(record)
        assert record.levelname == "ERROR"


class TestThirdPartyLoggers:
    """Tests for quieting the HTTP stack."""

    def test_held_at_warning_by_default(self):
        setup_logging()
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_verbose_lets_them_through(self):
        setup_logging(verbose=True)
        assert logging.getLogger("urllib3").level == logging.DEBUG
