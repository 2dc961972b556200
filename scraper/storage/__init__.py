"""
Storage layer exports.
"""

from __future__ import annotations

from scraper.run_control import RunControl
from scraper.storage.base import ItemStorage
from scraper.storage.json_storage import JSONItemStorage
from scraper.storage.sqlite_storage import SQLiteItemStorage
from scraper.types import RunIdentity


def create_item_storage(
    output_type: str,
    *,
    identity: RunIdentity,
    run_control: RunControl,
) -> ItemStorage:
    """
    Build the storage backend for an output type (`sqlite` or `json`).
    """

    normalized = output_type.strip().lower()
    if normalized == "json":
        return JSONItemStorage(path=identity.output_path.with_name(f"{identity.output_path.name}.json"))
    if normalized == "sqlite":
        return SQLiteItemStorage(
            path=identity.output_path.with_name(f"{identity.output_path.name}.sqlite"),
            table_name=identity.table_name,
            run_control=run_control,
        )
    raise ValueError(f"Unknown output_type='{output_type}'. Allowed types: json, sqlite.")


__all__ = [
    "ItemStorage",
    "JSONItemStorage",
    "SQLiteItemStorage",
    "create_item_storage",
]
