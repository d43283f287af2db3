"""
Runtime configuration read from the environment (and an optional .env file).
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from babel import default_locale
from dotenv import load_dotenv


DEFAULT_STATE_FILE = "timer-state.json"
DEFAULT_LOCALE = "en_US"


@dataclass(frozen=True)
class Settings:
    state_file: Path
    locale: str
    timezone: Optional[str]
    log_level: str
    log_file: Optional[Path]
    http_host: str
    http_port: int


def _env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()

    state_file = Path(_env("MCP_DATETIME_STATE_FILE") or Path.cwd() / DEFAULT_STATE_FILE)
    log_file = _env("MCP_DATETIME_LOG_FILE")

    return Settings(
        state_file=state_file,
        locale=_env("MCP_DATETIME_LOCALE") or default_locale("LC_TIME") or DEFAULT_LOCALE,
        timezone=_env("MCP_DATETIME_TIMEZONE"),
        log_level=(_env("MCP_DATETIME_LOG_LEVEL") or "INFO").upper(),
        log_file=Path(log_file) if log_file else None,
        http_host=_env("MCP_DATETIME_HOST") or "0.0.0.0",
        http_port=int(_env("MCP_DATETIME_PORT") or 8000),
    )


__all__ = ["Settings", "get_settings"]
