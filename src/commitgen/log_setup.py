"""Logging setup for commitgen."""

from __future__ import annotations

import logging

from rich.logging import RichHandler


NOISY_LOGGERS = ("urllib3", "git", "httpx", "google_genai")


def setup_logging(is_verbose: bool = False) -> None:
    """Set up logging configuration.

    Args:
        is_verbose: Log at DEBUG instead of WARNING, with source paths.
    """
    log_level = logging.DEBUG if is_verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers to avoid duplicate logs if called multiple times
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(
        RichHandler(
            level=log_level,
            rich_tracebacks=True,
            show_time=is_verbose,
            show_path=is_verbose,
        )
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
