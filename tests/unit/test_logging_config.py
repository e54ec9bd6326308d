"""Logging setup tests."""

import logging

import structlog

from dailyten.config import Settings
from dailyten.logging_config import QUIET_LOGGERS, setup_logging


def test_http_client_loggers_are_quieted():
    setup_logging(Settings(log_level="DEBUG", log_format="console"), component="worker")
    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_component_is_bound():
    setup_logging(Settings(environment="test"), component="worker")
    try:
        bound = structlog.contextvars.get_contextvars()
        assert bound["component"] == "worker"
        assert bound["environment"] == "test"
    finally:
        structlog.contextvars.clear_contextvars()
