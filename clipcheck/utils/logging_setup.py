"""Process-wide logging setup."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from clipcheck.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 5 * 1024 * 1024
LOG_BACKUPS = 5


def configure_logging(settings: Settings) -> None:
    """
    Configure root logging from settings.

    Console output at the configured level, plus rotating files under
    ``settings.log_dir``: ``combined.log`` for everything and ``error.log``
    for ERROR and above.

    Args:
        settings: Application settings
    """
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        combined = RotatingFileHandler(
            log_dir / "combined.log", maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS
        )
        errors = RotatingFileHandler(
            log_dir / "error.log", maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS
        )
        errors.setLevel(logging.ERROR)
        handlers.extend([combined, errors])

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.getLogger("httpx").setLevel(logging.WARNING)
