"""Logging setup"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from tiktok_ingest.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Settings = None) -> None:
    """Configure root logging: console plus a rotating file under log_dir."""
    settings = settings or get_settings()
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    handlers = [console_handler]

    if settings.log_to_file:
        if not os.path.exists(settings.log_dir):
            os.makedirs(settings.log_dir)
        # 10MB * 5 backups
        file_handler = RotatingFileHandler(
            os.path.join(settings.log_dir, "app.log"),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        handlers=handlers,
    )


def get_logger(name: str) -> logging.Logger:
    """Return a logger with its own stdout handler, for scripts run outside the app."""
    settings = get_settings()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.log_level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(getattr(logging, settings.log_level.upper()))
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger
