"""Logging configuration for ltnso.

Root level follows settings.debug. The cache layer logs every HIT/MISS/SET
at DEBUG, so its loggers get their own level (settings.cache_log_level)
and can be turned up without putting the whole process in debug mode.
"""

import logging
import sys

from ltnso.core.config import Settings, get_settings

CACHE_LOGGERS = ("ltnso.infrastructure.cache", "ltnso.infrastructure.messaging")
# Client libraries whose INFO output is connection chatter.
QUIET_LOGGERS = ("redis", "asyncpg")


def setup_logging(settings: Settings | None = None) -> None:
    """Configure application-wide logging.

    Root level is DEBUG when settings.debug is True, otherwise INFO; output
    goes to stdout. Cache loggers use settings.cache_log_level (DEBUG shows
    cache hits and misses). Client libraries are held at WARNING.
    """
    settings = settings or get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    cache_level = getattr(logging, settings.cache_log_level)
    for name in CACHE_LOGGERS:
        logging.getLogger(name).setLevel(cache_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name.

    Args:
        name: Usually __name__ of the calling module.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name)
