"""Loguru configuration for the application."""
from __future__ import annotations

import logging
import sys
from typing import Any

from loguru import logger

from eiken_trainer.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> | {extra}"
)


class InterceptHandler(logging.Handler):
    """Forward standard-library log records (uvicorn, sqlalchemy) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(sink: Any = None) -> None:
    """Replace the default loguru sink with one driven by settings."""

    logger.remove()
    logger.add(
        sys.stderr if sink is None else sink,
        format=LOG_FORMAT,
        level=settings.LOG_LEVEL.upper(),
        serialize=settings.LOG_JSON,
        backtrace=False,
        diagnose=settings.DEBUG,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers = [InterceptHandler()]
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG else logging.WARNING
    )

    logger.debug("Logging configured", level=settings.LOG_LEVEL)
