"""Logging setup utilities for brailleview.

Configures logging for the whole application from the logging settings.
Log records always go to stderr because stdout carries the rendered glyphs.
"""

from __future__ import annotations

import logging
import sys

from brailleview.config.settings import LoggingConfig

LOGGER_NAME = "brailleview"


def setup_logging(config: LoggingConfig | None = None) -> logging.Logger:
    """Configure the ``brailleview`` logger.

    Args:
        config: Logging configuration. If None, uses defaults
                (WARNING level, stderr output).

    Returns:
        The configured package logger.
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger(LOGGER_NAME)
    level = getattr(logging, config.level.upper(), logging.WARNING)
    root_logger.setLevel(level)

    # Calling twice (tests, repeated main()) must not duplicate output
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.debug("Logging initialized at %s level", logging.getLevelName(level))
    return root_logger
