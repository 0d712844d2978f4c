"""Logging setup for the library and the CLI."""

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("gmail_tester")

FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty at INFO/DEBUG; only shown when verbose
NOISY_LOGGERS = ("googleapiclient.discovery", "googleapiclient.discovery_cache", "google_auth_oauthlib")


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    verbose: bool = False,
) -> None:
    """Configure the ``gmail_tester`` logger.

    Library code only emits records; handlers are attached here, so
    embedding applications that never call this keep full control.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional file receiving every record down to DEBUG.
        verbose: Show time and level on the console and let Google
            client libraries log below WARNING.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(logging.DEBUG if log_file else log_level)
    logger.handlers.clear()

    if verbose:
        console_handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            log_time_format="%H:%M:%S",
        )
    else:
        # "[gmail] ..." messages read fine without decoration
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.setLevel(log_level)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)
