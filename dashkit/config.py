"""
dashkit configuration — all environment variables in one place.

Read from environment at import time.
"""

from __future__ import annotations

import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise RuntimeError(f"{name} must be >= 1, got {value}")
    return value


class Settings:
    """Application settings from environment variables."""

    # Storage
    STORE_DIR: Path = Path(os.environ.get("DASHKIT_STORE_DIR", "") or Path.home() / ".dashkit")

    # Views
    PAGE_SIZE: int = _int_env("DASHKIT_PAGE_SIZE", 10)

    # Application
    ENVIRONMENT: str = os.environ.get("DASHKIT_ENVIRONMENT", "development")

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


# Singleton instance
settings = Settings()
