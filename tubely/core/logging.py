"""Structured JSON logging for the API, the ingest services and the CLI.

Every event carries ``service`` and whatever context the caller binds
(``component``, ``video_id``, ...). Exceptions logged with ``exc_info`` are
rendered into the JSON line instead of a separate traceback.
"""

from __future__ import annotations

import logging
from typing import Any

import structlog

SERVICE_NAME = "tubely"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(format="%(message)s", level=level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def get_logger(**initial_values: Any) -> structlog.BoundLogger:
    return structlog.get_logger().bind(service=SERVICE_NAME, **initial_values)


__all__ = ["configure_logging", "get_logger", "SERVICE_NAME"]
