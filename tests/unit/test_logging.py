"""Tests for logging setup and the JSON formatter."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from preeval.core.logging import JsonFormatter, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    package_level = logging.getLogger("preeval").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("preeval").setLevel(package_level)


def _record(message="hello %s", args=("world",), exc_info=None):
    return logging.LogRecord("preeval.test", logging.WARNING, __file__, 10, message, args, exc_info)


class TestJsonFormatter:
    def test_formats_fields(self):
        data = json.loads(JsonFormatter().format(_record()))

        assert data["level"] == "WARNING"
        assert data["logger"] == "preeval.test"
        assert data["message"] == "hello world"
        assert "timestamp" in data

    def test_merges_extra_fields(self):
        logger = logging.getLogger("preeval.test.extra")
        record = logger.makeRecord(
            logger.name, logging.INFO, __file__, 1, "degraded", (), None,
            extra={"affiliate_id": 12345, "modality_id": 11},
        )
        data = json.loads(JsonFormatter().format(record))

        assert data["affiliate_id"] == 12345
        assert data["modality_id"] == 11
        assert "args" not in data
        assert "levelno" not in data

    def test_includes_exception(self):
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record(exc_info=sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in data["exception"]


class TestSetupLogging:
    def test_json_format(self, restore_logging):
        setup_logging("DEBUG", "json")
        root = logging.getLogger()

        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("redis").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_logging):
        setup_logging("chatty")
        assert logging.getLogger().level == logging.INFO
