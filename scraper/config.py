"""
Environment-driven settings for listing scrape runs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from db.config import load_env_files

OUTPUT_TYPES = ("sqlite", "json")


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    stripped = raw.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped or None


@dataclass(frozen=True)
class ApiSettings:
    """
    Remote data API connection settings.
    """

    api_key: str | None
    base_url: str = "http://localhost:3552/api"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class OutputSettings:
    """
    Default output location and behavior for scrape runs.
    """

    output_dir: str
    output_type: str = "sqlite"
    scrape_details: bool = False


@lru_cache(maxsize=1)
def get_api_settings() -> ApiSettings:
    """
    Return cached API settings from environment variables.
    """

    load_env_files()
    return ApiSettings(
        api_key=_get_optional_str_env("SCRAPER_API_KEY"),
        base_url=_get_str_env("SCRAPER_API_BASE_URL", "http://localhost:3552/api").rstrip("/"),
        timeout_seconds=max(1.0, _get_float_env("SCRAPER_API_TIMEOUT_SECONDS", 30.0)),
    )


@lru_cache(maxsize=1)
def get_output_settings() -> OutputSettings:
    """
    Return cached output settings from environment variables.

    Unknown output types fall back to sqlite.
    """

    load_env_files()
    output_type = _get_str_env("SCRAPER_OUTPUT_TYPE", "sqlite").lower()
    if output_type not in OUTPUT_TYPES:
        output_type = "sqlite"
    return OutputSettings(
        output_dir=_get_str_env("SCRAPER_OUTPUT_DIR", str(Path.cwd() / "output")),
        output_type=output_type,
        scrape_details=_get_bool_env("SCRAPER_SCRAPE_DETAILS", False),
    )
