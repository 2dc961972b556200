"""
db/session.py

SQLAlchemy engine factory for the SQLite output store.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from db.config import sqlite_url


def _get_bool_env(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def create_sqlite_engine(path: str | Path) -> Engine:
    """Create an engine for one SQLite file. Parent directories must exist."""
    return create_engine(
        sqlite_url(path),
        echo=_get_bool_env("SQL_ECHO", default=False),
        connect_args={"check_same_thread": False},
    )
