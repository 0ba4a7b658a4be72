from __future__ import annotations

import logging

from rich.logging import RichHandler

from md_reformat.log import LOGGER_NAME, get_logger, setup_logger


def test_setup_logger_installs_single_rich_handler():
    logger = setup_logger("debug")
    setup_logger("DEBUG")

    assert logger.name == LOGGER_NAME
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], RichHandler)
    assert not logger.propagate


def test_unknown_level_falls_back_to_warning():
    assert setup_logger("chatty").level == logging.WARNING


def test_get_logger():
    assert get_logger() is logging.getLogger(LOGGER_NAME)
    assert get_logger("md_reformat.format").name == "md_reformat.format"
