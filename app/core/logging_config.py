# app/core/logging_config.py

import logging
import sys

from loguru import logger

from app.core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)

# uvicorn installs its own handlers, so these are replaced explicitly
INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "PIL", "reportlab")


class InterceptHandler(logging.Handler):
    """Forward stdlib records (uvicorn, httpx, inventory client) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Attribute the message to the caller, not to the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None, sink=None) -> str:
    """
    Configure loguru as the only log output and route stdlib logging into it.

    ``level`` defaults to ``settings.LOG_LEVEL`` and applies to both the
    loguru sink and the stdlib root logger. Returns the level name in use.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    sink = sink or sys.stdout

    logger.remove()
    logger.add(
        sink,
        format=LOG_FORMAT,
        level=level_name,
        colorize=sink in (sys.stdout, sys.stderr),
        backtrace=False,
        diagnose=False,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=level_name, force=True)
    for name in INTERCEPTED_LOGGERS:
        logging.getLogger(name).handlers = [InterceptHandler()]
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return level_name
