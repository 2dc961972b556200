"""
SQLite-backed storage that grows its table schema as new fields appear.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from sqlalchemy import column, insert, inspect, table, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from db.session import create_sqlite_engine
from scraper.logging_utils import log_event
from scraper.run_control import RunControl
from scraper.stats import RunStats
from scraper.storage.base import ItemStorage

logger = logging.getLogger(__name__)

ID_COLUMN = "db_id"


def encode_value(value: Any) -> str | None:
    """
    Encode one element value as column text.

    Containers become JSON text, None stays NULL, booleans use JSON literals.
    """

    if value is None:
        return None
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class SQLiteItemStorage(ItemStorage):
    """
    One row per element, one nullable TEXT column per observed field.

    Known column names are cached after the table is opened and only
    reconciled against the database when an element carries an unseen field.
    """

    def __init__(self, *, path: Path, table_name: str, run_control: RunControl) -> None:
        self._path = path
        self._table_name = table_name
        self._run_control = run_control
        self._engine: Engine | None = None
        self._open_task: asyncio.Task[None] | None = None
        self._columns: set[str] = set()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def table_name(self) -> str:
        return self._table_name

    @property
    def columns(self) -> frozenset[str]:
        return frozenset(self._columns)

    def start(self) -> None:
        self._opening()

    async def open(self) -> bool:
        """
        Wait for the table to be ready. Returns False if opening failed.
        """

        await self._opening()
        return self._engine is not None

    async def write(self, element: dict[str, Any]) -> None:
        await self._opening()
        engine = self._engine
        if engine is None:
            return

        try:
            await asyncio.to_thread(self._insert, engine, element)
        except (SQLAlchemyError, TypeError, ValueError) as exc:
            log_event(
                logger,
                logging.ERROR,
                "storage_write_failed",
                table=self._table_name,
                item_id=element.get("id"),
                error=str(exc),
            )

    async def finalize(self, stats: RunStats) -> None:
        if self._open_task is not None:
            await self._open_task
        if self._engine is None:
            return

        await asyncio.to_thread(self._engine.dispose)
        self._engine = None
        log_event(
            logger,
            logging.INFO,
            "sqlite_output_closed",
            path=str(self._path),
            table=self._table_name,
            columns=len(self._columns),
            items_success=stats.items_success,
        )

    def _opening(self) -> asyncio.Task[None]:
        if self._open_task is None:
            self._open_task = asyncio.ensure_future(self._open())
        return self._open_task

    async def _open(self) -> None:
        try:
            await asyncio.to_thread(self._create_table)
        except (OSError, SQLAlchemyError) as exc:
            self._engine = None
            log_event(
                logger,
                logging.ERROR,
                "storage_open_failed",
                path=str(self._path),
                table=self._table_name,
                error=str(exc),
            )
            self._run_control.mark_fatal(["Error creating SQLite database:", exc])

    def _create_table(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_sqlite_engine(self._path)
        try:
            with engine.begin() as conn:
                conn.execute(
                    text(
                        f"CREATE TABLE IF NOT EXISTS {self._quote(engine, self._table_name)} "
                        f"({ID_COLUMN} INTEGER PRIMARY KEY AUTOINCREMENT)"
                    )
                )
                self._columns = self._load_columns(conn)
        except SQLAlchemyError:
            engine.dispose()
            raise
        self._engine = engine

    def _insert(self, engine: Engine, element: dict[str, Any]) -> None:
        row = {str(key): encode_value(value) for key, value in element.items()}

        added: set[str] = set()
        with engine.begin() as conn:
            # SQLite column names are case-insensitive.
            known = {name.casefold() for name in self._columns}
            unseen = [key for key in row if key.casefold() not in known]
            if unseen:
                existing = self._load_columns(conn)
                present = {name.casefold() for name in existing}
                for key in unseen:
                    if key.casefold() in present:
                        continue
                    conn.execute(
                        text(
                            f"ALTER TABLE {self._quote(engine, self._table_name)} "
                            f"ADD COLUMN {self._quote(engine, key)} TEXT"
                        )
                    )
                    added.add(key)
                    present.add(key.casefold())
                self._columns |= existing

            target = table(self._table_name, *(column(key) for key in row))
            conn.execute(insert(target).values(row))
        self._columns |= added

    def _load_columns(self, conn: Connection) -> set[str]:
        return {column["name"] for column in inspect(conn).get_columns(self._table_name)}

    @staticmethod
    def _quote(engine: Engine, name: str) -> str:
        # text() treats ":name" as a bind parameter, even inside quotes.
        return engine.dialect.identifier_preparer.quote_identifier(name).replace(":", "\\:")
