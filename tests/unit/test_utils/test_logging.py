"""Tests for logging setup."""

from __future__ import annotations

import logging

from brailleview.config.settings import LoggingConfig
from brailleview.utils.logging import LOGGER_NAME, setup_logging


class TestSetupLogging:

    def test_defaults_to_warning(self) -> None:
        logger = setup_logging()
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.WARNING

    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        setup_logging(LoggingConfig(level="debug"))
        logger = setup_logging(LoggingConfig(level="debug"))
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_file_handler(self, tmp_path) -> None:
        path = tmp_path / "brailleview.log"
        logger = setup_logging(LoggingConfig(level="INFO", file=str(path)))
        logging.getLogger("brailleview.source").info("opened clip.gif")
        for handler in logger.handlers:
            handler.flush()
        assert "opened clip.gif" in path.read_text()
        setup_logging()
