"""Tests for logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from gmail_tester.utils.logging import logger, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    level = logger.level
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(level)
    for name in ("googleapiclient.discovery", "googleapiclient.discovery_cache", "google_auth_oauthlib"):
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_plain_console(self):
        """Test a single undecorated console handler by default."""
        setup_logging("WARNING")

        assert len(logger.handlers) == 1
        assert not isinstance(logger.handlers[0], RichHandler)
        assert logger.handlers[0].level == logging.WARNING
        assert logging.getLogger("googleapiclient.discovery").level == logging.WARNING

    def test_verbose_uses_rich(self):
        setup_logging("DEBUG", verbose=True)

        assert isinstance(logger.handlers[0], RichHandler)
        assert logging.getLogger("google_auth_oauthlib").level == logging.DEBUG

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        setup_logging()

        assert len(logger.handlers) == 1

    def test_file_gets_debug_records(self, tmp_path):
        """Test the log file receives records below the console level."""
        log_file = tmp_path / "logs" / "gmail.log"
        setup_logging("ERROR", log_file=log_file)

        logger.debug("[gmail] debug detail")
        for handler in logger.handlers:
            handler.flush()

        assert "[gmail] debug detail" in log_file.read_text(encoding="utf-8")
