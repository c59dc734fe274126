"""Tests for logging setup (cache logger levels)."""

import logging

import pytest

from ltnso.core.config import Settings
from ltnso.shared.logging import CACHE_LOGGERS, QUIET_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def _restore_levels():
    names = CACHE_LOGGERS + QUIET_LOGGERS
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def test_cache_loggers_follow_cache_log_level() -> None:
    setup_logging(Settings(_env_file=None, cache_log_level="DEBUG"))
    cache_logger = logging.getLogger("ltnso.infrastructure.cache.redis_cache")
    assert cache_logger.isEnabledFor(logging.DEBUG)
    assert logging.getLogger("ltnso.infrastructure.messaging").level == logging.DEBUG


def test_client_libraries_are_quiet() -> None:
    setup_logging(Settings(_env_file=None, cache_log_level="WARNING"))
    assert logging.getLogger("redis").level == logging.WARNING
    assert not logging.getLogger("ltnso.infrastructure.cache").isEnabledFor(logging.INFO)


def test_cache_log_level_is_validated() -> None:
    with pytest.raises(ValueError):
        Settings(_env_file=None, cache_log_level="LOUD")
