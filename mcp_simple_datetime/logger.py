from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_INITIALIZED = False


def configure_logging(level: str = "INFO", *, log_path: Optional[Path] = None) -> None:
    """
    Configure package logging.

    Records go to stderr because stdout carries the stdio protocol stream.
    A rotating file handler is added when ``log_path`` is given.
    """
    global _INITIALIZED
    if _INITIALIZED:
        return

    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)

    logger = logging.getLogger("mcp_simple_datetime")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(log_path), maxBytes=1_000_000, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    _INITIALIZED = True
    logger.debug("Logging configured (level=%s, file=%s)", level, log_path)


__all__ = ["configure_logging"]
