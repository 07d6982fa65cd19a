from typing import Optional

from parley.infrastructure.config.settings import Settings, get_settings
from parley.infrastructure.observability.logging import setup_logging


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Apply logging settings from the environment"""
    settings = settings or get_settings()
    setup_logging(
        log_level=settings.LOG_LEVEL,
        log_format=settings.LOG_FORMAT,
        service_name=settings.SERVICE_NAME,
    )
