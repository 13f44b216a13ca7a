"""Tests for logging setup."""

import logging

from logger import LOGGER_NAME, setup_logging


class TestSetupLogging:
    """setup_logging() level handling."""

    def teardown_method(self):
        setup_logging()

    def test_level_from_argument(self):
        logger = setup_logging("debug")
        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert logger.isEnabledFor(logging.DEBUG)

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("LOUD").level == logging.INFO

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging("WARNING")
        logger = setup_logging("WARNING")
        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
