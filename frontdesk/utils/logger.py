"""Process-wide logging for the API, services and repository."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from frontdesk.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """Install the shared handlers once.

    Records always go to stdout. When ``FRONTDESK_LOG_FILE`` is set they are
    also appended to that file, which keeps an audit trail of forced saves
    and factory resets across restarts.
    """

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()
    target_file = log_file or settings.log_file

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if target_file is not None:
        target_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(target_file, encoding="utf-8"))

    logging.basicConfig(level=resolved_level, format=LOG_FORMAT, handlers=handlers)
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    configure_logging()
    return logging.getLogger(name)
