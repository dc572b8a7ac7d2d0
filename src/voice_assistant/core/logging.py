"""Logging setup for the CLI and the web application."""

from __future__ import annotations

import json
import logging
import logging.config
from collections.abc import Iterable
from typing import Any

from .config import LoggingSettings

# HTTP client libraries log every request at INFO.
DEFAULT_QUIET_LOGGERS = ("httpx", "httpcore")


class JsonFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


_FORMATTERS: dict[str, dict[str, Any]] = {
    "json": {"()": JsonFormatter},
    "text": {"format": "%(asctime)s %(levelname)-7s %(name)s: %(message)s"},
}


def build_logging_config(
    settings: LoggingSettings,
    quiet: Iterable[str] = DEFAULT_QUIET_LOGGERS,
) -> dict[str, Any]:
    """Return the ``dictConfig`` mapping for ``settings``."""
    formatter = "json" if settings.structured else "text"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {formatter: _FORMATTERS[formatter]},
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": formatter,
                "level": settings.level,
            },
        },
        "loggers": {name: {"level": "WARNING"} for name in quiet},
        "root": {"handlers": ["stderr"], "level": settings.level},
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Install the handlers described by ``settings`` on the root logger."""
    logging.config.dictConfig(build_logging_config(settings))


__all__ = [
    "DEFAULT_QUIET_LOGGERS",
    "JsonFormatter",
    "build_logging_config",
    "configure_logging",
]
