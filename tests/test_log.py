"""Tests for logging configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from theme_sync.log import configure_logging, get_logger


@pytest.fixture
def restore_logging():
    """Undo global logging changes after the test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_logs(restore_logging, capsys):
    """Test that JSON output carries the prefixed logger name and fields."""
    configure_logging("DEBUG", json_logs=True)
    get_logger("tests.json").info("Upload finished", key="assets/theme.css")

    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "Upload finished"
    assert record["key"] == "assets/theme.css"
    assert record["logger"] == "theme_sync.tests.json"
    assert record["level"] == "info"


def test_level_filtering(restore_logging, capsys):
    configure_logging("WARNING", json_logs=True)
    get_logger("tests.filtered").info("hidden")
    assert "hidden" not in capsys.readouterr().err


if __name__ == "__main__":
    pytest.main([__file__, "-vv"])
