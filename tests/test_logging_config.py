"""Tests for log output setup."""

import logging
import sys

import pytest
from html2md.logging_config import LOGGER_NAME, setup_logging


@pytest.fixture
def html2md_logger():
    """Yield the package logger and restore it afterwards."""
    logger = logging.getLogger(LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    logger.handlers = []
    yield logger
    for handler in logger.handlers:
        handler.close()
    handlers, level, propagate = saved
    logger.handlers = handlers
    logger.propagate = propagate
    logger.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_logs_to_stderr_only(self, html2md_logger):
        """Test records go to stderr and stay off the root logger."""
        logger = setup_logging("warning")

        assert logger is html2md_logger
        assert logger.propagate is False
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.handlers[0].stream is sys.stderr

    def test_unknown_level_means_info(self, html2md_logger):
        """Test a misspelt level name falls back to INFO."""
        assert setup_logging("loud").level == logging.INFO

    def test_log_file_receives_records(self, html2md_logger, tmp_path):
        """Test a log file gets the same records as stderr."""
        log_file = tmp_path / "html2md.log"
        logger = setup_logging("DEBUG", log_file=log_file, format_string="%(levelname)s %(message)s")

        logging.getLogger("html2md.images.harvester").debug("fetched café.png")
        for handler in logger.handlers:
            handler.flush()

        assert log_file.read_text(encoding="utf-8") == "DEBUG fetched café.png\n"

    def test_second_call_only_changes_level(self, html2md_logger):
        """Test calling again keeps the handlers and updates their level."""
        first = list(setup_logging("INFO").handlers)
        logger = setup_logging("ERROR")

        assert logger.handlers == first
        assert [handler.level for handler in logger.handlers] == [logging.ERROR]

    def test_force_replaces_handlers(self, html2md_logger, tmp_path):
        """Test force installs fresh handlers."""
        first = list(setup_logging("INFO").handlers)
        logger = setup_logging("INFO", log_file=tmp_path / "out.log", force=True)

        assert len(logger.handlers) == 2
        assert not set(first) & set(logger.handlers)
