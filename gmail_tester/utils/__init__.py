"""Utility modules for logging and shared errors."""

from gmail_tester.utils.errors import GmailTesterError
from gmail_tester.utils.logging import logger, setup_logging

__all__ = ["GmailTesterError", "logger", "setup_logging"]
