"""
Logging setup - JSON lines to stdout.

Every module logs through logging.getLogger(__name__), so everything under
the "app" namespace ends up here once setup_logging() has run.
"""
from __future__ import annotations

import json
import logging
from logging.config import dictConfig
from typing import Any, Optional

from app.core.config import get_settings


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for structured logs to stdout."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "time": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        # cache_key is attached via extra= by the query cache
        for extra_key in ("cache_key", "funcName"):
            val = getattr(record, extra_key, None)
            if val:
                payload[extra_key] = val
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure JSON logging for the app and uvicorn."""
    log_level = (level or get_settings().log_level).upper()

    dict_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JsonFormatter,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console"],
        },
        "loggers": {
            "uvicorn": {"level": log_level, "handlers": ["console"], "propagate": False},
            "uvicorn.error": {"level": log_level, "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            # SQL echo is noisy; only surface it when explicitly asked for
            "sqlalchemy.engine": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            # app.* propagates to the root handler
            "app": {"level": log_level},
        },
    }

    dictConfig(dict_config)
