"""Tests for gatewayload logging setup."""

from __future__ import annotations

import json
import logging

import pytest

from gatewayload._internal.logging import _JsonFormatter, get_logger, setup_logging


@pytest.fixture(autouse=True)
def _reset_logger():
    logger = logging.getLogger("gatewayload")
    saved = list(logger.handlers)
    logger.handlers.clear()
    yield
    logger.handlers[:] = saved


class TestSetupLogging:
    def test_installs_single_handler(self):
        logger = setup_logging(logging.DEBUG)
        setup_logging(logging.WARNING)
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert logger.propagate is False

    def test_switches_to_json(self):
        logger = setup_logging()
        setup_logging(json_format=True)
        assert isinstance(logger.handlers[0].formatter, _JsonFormatter)

    def test_get_logger_namespace(self):
        assert get_logger("engine.driver").name == "gatewayload.engine.driver"


class TestJsonFormatter:
    def test_includes_context_fields(self):
        record = logging.LogRecord(
            name="gatewayload.engine.driver",
            level=logging.INFO,
            pathname=__file__,
            lineno=1,
            msg="Iteration %d done",
            args=(3,),
            exc_info=None,
        )
        record.user_id = 1
        record.iteration = 3

        entry = json.loads(_JsonFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "gatewayload.engine.driver"
        assert entry["message"] == "Iteration 3 done"
        assert entry["user_id"] == 1
        assert entry["iteration"] == 3
        assert "check" not in entry
