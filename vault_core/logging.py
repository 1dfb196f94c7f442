"""
Logging setup for docvault.

Every module logs through loguru. setup_logging() installs a single
stdout sink and routes the standard library loggers used by uvicorn,
psycopg and urllib3 into it.
"""

import logging
import sys

from loguru import logger

from vault_core.config import settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)

# Loggers owned by libraries that would otherwise bypass loguru
ROUTED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi", "psycopg", "urllib3")


class InterceptHandler(logging.Handler):
    """
    Forward standard library records to loguru, keeping the caller location.
    See: https://loguru.readthedocs.io/en/stable/overview.html#entirely-compatible-with-standard-logging
    """

    def emit(self, record):
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str | None = None, json_logs: bool | None = None):
    """
    Configure loguru as the only log sink.

    Args:
        level: Minimum level to emit. Defaults to settings.LOG_LEVEL.
        json_logs: Emit one JSON object per line. Defaults to settings.LOG_JSON.
    """
    level = (level or settings.LOG_LEVEL).upper()
    serialize = settings.LOG_JSON if json_logs is None else json_logs

    logger.remove()
    if serialize:
        logger.add(sys.stdout, level=level, serialize=True)
    else:
        logger.add(sys.stdout, format=LOG_FORMAT, level=level, colorize=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in ROUTED_LOGGERS:
        routed = logging.getLogger(name)
        routed.handlers = [InterceptHandler()]
        routed.propagate = False

    logger.info(f"Logging initialized (level={level}, json={serialize})")
