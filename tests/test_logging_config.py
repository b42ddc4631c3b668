"""Tests for the root logger setup."""

import logging

import pytest

from service_desk_api.app.core.logging_config import QUIET_LOGGERS, setup_logging


def _owned(root):
    return [h for h in root.handlers if getattr(h, "_service_desk_handler", False)]


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    quiet = {name: logging.getLogger(name).level for name in QUIET_LOGGERS}
    yield root
    for handler in _owned(root):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
    for name, value in quiet.items():
        logging.getLogger(name).setLevel(value)


def test_repeated_setup_does_not_stack_handlers(root_logger):
    setup_logging("INFO")
    setup_logging("INFO")
    assert len(_owned(root_logger)) == 1


def test_foreign_handlers_are_left_alone(root_logger):
    foreign = logging.NullHandler()
    root_logger.addHandler(foreign)
    setup_logging("INFO")
    assert foreign in root_logger.handlers
    root_logger.removeHandler(foreign)


def test_level_names_and_unknown_levels(root_logger):
    assert setup_logging("debug").level == logging.DEBUG
    assert setup_logging("chatty").level == logging.INFO


def test_client_loggers_are_held_at_warning(root_logger):
    setup_logging("DEBUG")
    assert logging.getLogger("httpx").level == logging.WARNING
    setup_logging("ERROR")
    assert logging.getLogger("fontTools").level == logging.ERROR


def test_file_handler_writes_to_a_new_directory(root_logger, tmp_path):
    logfile = tmp_path / "logs" / "service_desk.log"
    setup_logging("INFO", str(logfile))
    logging.getLogger("service_desk_api.test").info("slip 42 rendered")
    for handler in _owned(root_logger):
        handler.flush()
    assert "[INFO] service_desk_api.test: slip 42 rendered" in logfile.read_text(encoding="utf-8")
    assert len(_owned(root_logger)) == 2
