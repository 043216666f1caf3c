"""Logging configuration for cbox.

Diagnostics go to stderr so stdout stays free for the container session.
Verbose mode switches the application loggers to DEBUG.
"""

import logging
import sys

# Application loggers configured by configure_logging()
APP_LOGGERS = ["cbox"]


def configure_logging(verbose: bool = False) -> None:
    """Configure application logging.

    Sets up logging with:
    - Application logs at WARNING, or DEBUG when verbose
    - A single stderr handler with a clean format

    Args:
        verbose: Enable DEBUG diagnostics
    """
    log_level = logging.DEBUG if verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    # Remove existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        logging.Formatter(
            "cbox: %(levelname)s | %(name)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root_logger.addHandler(console_handler)

    for app_logger in APP_LOGGERS:
        logging.getLogger(app_logger).setLevel(log_level)

    if verbose:
        logging.getLogger("cbox").debug("Verbose mode enabled")


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
