"""Runtime settings.

Values come from environment variables; a ``.env`` file in the working
directory is loaded on import without overriding variables already set.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv(override=False)


def _env_int(name: str, default: int, minimum: Optional[int] = None) -> int:
    try:
        value = int(os.environ.get(name, default))
    except ValueError:
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # Upper bound on pages followed in one extraction run
    max_pages: int = field(
        default_factory=lambda: _env_int("PAGEMERGE_MAX_PAGES", 50, minimum=1)
    )
    # Per-request timeout in seconds for every HTTP fetch
    fetch_timeout: float = field(
        default_factory=lambda: _env_float("PAGEMERGE_FETCH_TIMEOUT", 10.0)
    )
    # Share one HTML fetch per page between the content parser and the locator
    reuse_html: bool = field(default_factory=lambda: _env_bool("PAGEMERGE_REUSE_HTML", True))
    log_level: str = field(
        default_factory=lambda: os.environ.get("PAGEMERGE_LOG_LEVEL", "INFO").upper()
    )


settings = Settings()
