# tests/test_logging_config.py

import logging

import pytest

from storefront.core.config import settings
from storefront.core.logging_config import build_logging_config, setup_logging


def test_storefront_logger_uses_configured_level():
    config = build_logging_config("DEBUG")

    assert config["loggers"]["storefront"]["level"] == "DEBUG"
    assert set(config["loggers"]) == {"storefront", "httpx"}


@pytest.fixture
def restore_storefront_logger():
    logger = logging.getLogger("storefront")
    saved = (logger.level, logger.propagate, list(logger.handlers))
    yield
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]


def test_setup_logging_applies_log_level_setting(mocker, restore_storefront_logger):
    mocker.patch.object(settings, "LOG_LEVEL", "warning")

    setup_logging()

    assert logging.getLogger("storefront").level == logging.WARNING
    assert logging.getLogger("storefront.services.cart").getEffectiveLevel() == logging.WARNING
