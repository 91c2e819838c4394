"""Structured JSON logging shared by the voice services."""

import logging
import os
import sys

from pythonjsonlogger import jsonlogger

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")

_handler: logging.Handler | None = None


def _level_from_env() -> int:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging(service: str = "stt-proxy") -> logging.Logger:
    """
    Routes the root and Uvicorn loggers through one JSON stdout handler.

    Each record carries the Datadog trace_id/span_id injected by ddtrace and
    a static ``service`` field. The handler is installed once per process,
    so every module may call this at import time to get its logger.

    Args:
        service: Value of the ``service`` field on every record.

    Returns:
        logging.Logger: The root logger.
    """
    global _handler
    root_logger = logging.getLogger()
    if _handler is not None:
        return root_logger

    level = _level_from_env()
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(
        jsonlogger.JsonFormatter(LOG_FORMAT, static_fields={"service": service})
    )

    root_logger.setLevel(level)
    root_logger.handlers = [_handler]

    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.handlers = [_handler]
        uvicorn_logger.propagate = False

    return root_logger
