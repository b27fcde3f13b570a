"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

from usermgmt.core.logger import JSONFormatter, configure_logging


def test_configure_logging_sets_level(app) -> None:
    """``configure_logging`` should set the root logger level."""
    try:
        configure_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG
    finally:
        configure_logging(app.config["LOG_LEVEL"])


def test_unknown_level_falls_back_to_info(app) -> None:
    try:
        configure_logging("chatty")
        assert logging.getLogger().level == logging.INFO
    finally:
        configure_logging(app.config["LOG_LEVEL"])


def test_json_formatter_includes_extras() -> None:
    record = logging.LogRecord("usermgmt.test", logging.INFO, __file__, 1, "auth.login", (), None)
    record.user_id = "u-1"
    record.request_id = "req-1"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "auth.login"
    assert payload["level"] == "INFO"
    assert payload["user_id"] == "u-1"
    assert payload["request_id"] == "req-1"
    assert "elapsed_ms" not in payload
