"""Logging configuration using loguru.

This module configures structured logging with environment-specific formatters:
- Local: Colorized console output with source file:line numbers
- Staging/Production: JSON structured logs for log aggregation tools

Every record is patched with the request_id and user_id of the request it
was emitted from. Standard library logging (our services, SQLAlchemy,
httpx, uvicorn) is intercepted and routed to loguru.
"""

import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncIterator

from loguru import logger

from src.config import get_settings
from src.core.lifespan import manager
from src.core.request_context import get_request_id, get_user_id

NOISY_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


class InterceptHandler(logging.Handler):
    """Handler that intercepts standard logging and routes to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def add_request_context(record) -> None:
    """Loguru patcher adding request-scoped fields to ``extra``."""
    request_id = get_request_id()
    if request_id is not None:
        record["extra"].setdefault("request_id", request_id)
    user_id = get_user_id()
    if user_id is not None:
        record["extra"].setdefault("user_id", user_id)


def sink_serializer(message) -> None:
    """Custom sink that serializes records to one line of JSON."""
    record = message.record
    subset = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    for key, value in record["extra"].items():
        if not key.startswith("_"):
            subset[key] = value

    if record["exception"]:
        exc_type, exc_value, _ = record["exception"]
        subset["exception"] = {
            "type": exc_type.__name__ if exc_type else None,
            "value": str(exc_value),
        }

    print(json.dumps(subset, default=str), file=sys.stderr)


def configure_logging() -> None:
    """Configure loguru logger based on environment settings.

    Removes the default handler, installs the environment-specific sink and
    replaces standard logging handlers with ``InterceptHandler``.
    """
    settings = get_settings()

    logger.remove()
    logger.configure(patcher=add_request_context)

    if settings.ENVIRONMENT == "local":
        logger.add(
            sys.stderr,
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level> | {extra}"
            ),
            level=settings.LOG_LEVEL,
            colorize=True,
        )
    else:
        logger.add(sink_serializer, level=settings.LOG_LEVEL)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name, level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


@manager.add
@asynccontextmanager
async def logging_lifespan() -> AsyncIterator[dict]:
    """Log application startup and shutdown events."""
    settings = get_settings()

    logger.info(
        "Application starting",
        app_name=settings.APP_NAME,
        environment=settings.ENVIRONMENT,
        log_level=settings.LOG_LEVEL,
        reference_timezone=settings.REFERENCE_TIMEZONE,
        lifespans=manager.names,
    )

    yield {}

    logger.info("Application shutting down")
