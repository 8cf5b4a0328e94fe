import logging

import pytest

from daqstream.log import LOGGER_NAME, log_callback


class _Collector(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def collector():
    callback = log_callback()
    handler = _Collector()
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(handler)
    try:
        yield callback, handler
    finally:
        logger.removeHandler(handler)


def test_message_is_logged_with_level(collector):
    callback, handler = collector
    callback(logging.ERROR, "Could not write signal time!")
    assert [r.getMessage() for r in handler.records] == ["Could not write signal time!"]
    assert handler.records[0].levelno == logging.ERROR
    assert handler.records[0].name == "openDaqStreaming"


def test_debug_is_filtered_by_default(collector):
    callback, handler = collector
    callback(logging.DEBUG, "hidden")
    callback(logging.INFO, "shown")
    assert [r.getMessage() for r in handler.records] == ["shown"]


def test_record_points_at_caller(collector):
    callback, handler = collector
    callback(logging.WARNING, "where")
    assert handler.records[0].funcName == "test_record_points_at_caller"


def test_repeated_callbacks_share_one_stdout_handler(collector, capsys):
    callback, _ = collector
    log_callback()
    log_callback()
    callback(logging.INFO, "once only")
    out = capsys.readouterr().out
    assert out.count("once only") == 1