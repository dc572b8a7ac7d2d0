"""Tests for logging utilities."""

from __future__ import annotations

import json
import logging

from voice_assistant.core.config import LoggingSettings
from voice_assistant.core.logging import (
    JsonFormatter,
    build_logging_config,
    configure_logging,
)


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG


def test_configure_logging_quiets_http_clients() -> None:
    """HTTP client loggers stay at WARNING even when the root is verbose."""

    configure_logging(LoggingSettings(level="DEBUG", structured=True))
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_build_logging_config_selects_formatter() -> None:
    """Structured settings switch the console handler to the JSON formatter."""

    config = build_logging_config(LoggingSettings(structured=True), quiet=["x"])

    assert config["handlers"]["stderr"]["formatter"] == "json"
    assert list(config["formatters"]) == ["json"]
    assert config["loggers"] == {"x": {"level": "WARNING"}}


def test_json_formatter_escapes_quotes() -> None:
    """Messages with quotes still render as one valid JSON object."""

    record = logging.LogRecord(
        name="voice_assistant.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg='Discarding "%s" output',
        args=("bad",),
        exc_info=None,
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == 'Discarding "bad" output'
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "voice_assistant.test"
