# storefront/core/logging_config.py

from logging.config import dictConfig

from storefront.core.config import settings


def build_logging_config(level: str) -> dict:
    """
    Логи пакета storefront идут в stdout с уровнем из настроек.
    Запросы httpx к каталогу и переводчику логируются только от WARNING.
    """
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "storefront": {"handlers": ["console"], "level": level, "propagate": False},
            "httpx": {"level": "WARNING"},
        },
        "root": {
            "level": "INFO",
            "handlers": ["console"],
        },
    }


def setup_logging():
    """Применяет конфигурацию логирования."""
    dictConfig(build_logging_config(settings.LOG_LEVEL.upper()))
