"""Logging setup shared by every entry point."""

import logging
from typing import Optional

from athlete_ai.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging once from settings."""
    settings = settings or get_settings()
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger(__name__).info(f"Logging configured for {settings.app_name}")
