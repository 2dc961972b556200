"""
In-memory accumulator flushed as one JSON document at the end of a run.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from scraper.errors import StorageError
from scraper.logging_utils import log_event
from scraper.stats import RunStats
from scraper.storage.base import ItemStorage

logger = logging.getLogger(__name__)


class JSONItemStorage(ItemStorage):
    """
    Keep every element in memory and write `{"stats", "list"}` on finalize.
    """

    def __init__(self, *, path: Path) -> None:
        self._path = path
        self._items: list[dict[str, Any]] = []

    @property
    def path(self) -> Path:
        return self._path

    @property
    def items(self) -> list[dict[str, Any]]:
        return list(self._items)

    async def write(self, element: dict[str, Any]) -> None:
        self._items.append(element)

    async def finalize(self, stats: RunStats) -> None:
        payload = {"stats": stats.to_dict(), "list": self._items}
        try:
            await asyncio.to_thread(self._dump, payload)
        except OSError as exc:
            log_event(
                logger,
                logging.ERROR,
                "storage_finalize_failed",
                path=str(self._path),
                error=str(exc),
            )
            raise StorageError(f"Failed to write JSON output: {self._path}") from exc
        log_event(
            logger,
            logging.INFO,
            "json_output_written",
            path=str(self._path),
            items=len(self._items),
        )

    def _dump(self, payload: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(payload, indent=2, default=str, ensure_ascii=False),
            encoding="utf-8",
        )
