import logging

from logger import ROOT_LOGGER, get_logger


def test_child_loggers_share_one_handler():
    a = get_logger("engine")
    b = get_logger("modes")
    root = logging.getLogger(ROOT_LOGGER)
    assert a.name == f"{ROOT_LOGGER}.engine"
    assert b.parent is root or b.parent.name == ROOT_LOGGER
    get_logger("engine")
    assert len(root.handlers) == 1


def test_root_and_level():
    assert get_logger() is logging.getLogger(ROOT_LOGGER)
    log = get_logger("scratch", level=logging.DEBUG)
    assert log.level == logging.DEBUG
