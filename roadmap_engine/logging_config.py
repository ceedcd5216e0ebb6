"""Stream logging setup for services embedding the roadmap engine."""

from __future__ import annotations

import logging
import os
from logging.config import dictConfig
from typing import Optional

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_NOISY_LOGGERS = ("openai", "httpx", "httpcore")


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stream handler used by services embedding the engine.

    ``ROADMAP_LOG_LEVEL`` sets the root level, ``ROADMAP_ENGINE_LOG_LEVEL`` narrows
    the ``roadmap_engine`` loggers, and ``ROADMAP_DEBUG_HTTP=1`` re-enables the
    provider client chatter that is otherwise capped at WARNING.
    """
    root_level = (level or os.getenv("ROADMAP_LOG_LEVEL", "INFO")).upper()
    engine_level = os.getenv("ROADMAP_ENGINE_LOG_LEVEL", root_level).upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": DEFAULT_LOG_FORMAT,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "loggers": {
                "roadmap_engine": {
                    "level": engine_level,
                    "propagate": True,
                },
            },
            "root": {
                "handlers": ["default"],
                "level": root_level,
            },
        }
    )

    http_level = logging.DEBUG if os.getenv("ROADMAP_DEBUG_HTTP", "0") == "1" else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(http_level)


__all__ = ["DEFAULT_LOG_FORMAT", "configure_logging"]
