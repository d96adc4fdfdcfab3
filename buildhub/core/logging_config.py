"""Logging setup: one application log plus a separate security audit trail."""
from __future__ import annotations

import logging
import logging.handlers
import os
import time

from buildhub.core.config import settings

SECURITY_LOGGER_NAME = "buildhub.security"

_FORMAT = "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s"
_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def _rotating_handler(path: str, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_dir: str | None = None) -> None:
    """Configure root, security and server loggers.

    Everything goes to ``app.log`` and stderr. Records from the security
    logger (CSRF rejections, rate-limit denials, issued storage tokens) are
    additionally written to ``security.log``. Calling this twice replaces the
    handlers instead of stacking them.
    """
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    log_dir = log_dir or settings.LOG_DIR
    os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
    logging.Formatter.converter = time.gmtime

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [
        _rotating_handler(os.path.join(log_dir, "app.log"), formatter),
        stream_handler,
    ]

    security_logger = logging.getLogger(SECURITY_LOGGER_NAME)
    security_logger.setLevel(log_level)
    security_logger.handlers = [_rotating_handler(os.path.join(log_dir, "security.log"), formatter)]
    security_logger.propagate = True

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(log_level)

    # SQL echo is controlled by DEBUG on the engine.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DEBUG else logging.WARNING)


__all__ = ["SECURITY_LOGGER_NAME", "setup_logging"]
