"""Process-wide logging configuration.

Modules only ever call ``logging.getLogger(__name__)``; handlers are
installed here once, by the CLI or the application factory.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from .settings import settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install console (and optionally rotating file) handlers on the root logger.

    Safe to call more than once; only the level is updated on later calls.

    Args:
        level: Logging level name. Defaults to ``settings.log_level``.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel((level or settings.log_level).upper())

    if _configured:
        return

    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if settings.log_to_file:
        settings.log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_path,
            maxBytes=settings.log_max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    _configured = True
