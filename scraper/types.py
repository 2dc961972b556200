"""
Runtime data models for listing scrape runs.

`ListingPage` and `DetailItem` mirror the generic envelope returned by the
remote API. Only the envelope is modelled; the short items and detail
elements stay plain dicts because their fields depend on the entity.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ShortItem = dict[str, Any]


class Pagination(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    total_pages: int | None = Field(default=None, alias="totalPages")


class ApiUser(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    requests_concurrency: int | None = Field(default=None, alias="requestsConcurrency")


class ListingPage(BaseModel):
    """
    One page of short items plus pagination and account metadata.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Any = None
    # Entries are not validated; the processor skips anything that is not an object.
    elements: list[Any] | None = None
    pagination: Pagination | None = None
    user: ApiUser | None = None
    status: int | None = None
    error: Any = None
    query: Any = None


class DetailItem(BaseModel):
    """
    Resolved record for one short item. `element` is None when unresolved.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Any = None
    element: dict[str, Any] | None = None
    status: int | None = None
    error: Any = None
    query: Any = None
    skipped: bool = False


FetchList = Callable[[int], Awaitable[ListingPage | None]]
FetchItem = Callable[[ShortItem], Awaitable[DetailItem | None] | None]


@dataclass(frozen=True)
class RunIdentity:
    """
    Identity and derived output location of one scrape run.
    """

    run_id: str
    started_at: datetime
    output_path: Path
    table_name: str


@dataclass
class ListingScraperOptions:
    """
    Caller-supplied collaborators and output options for one listing run.
    """

    fetch_list: FetchList
    fetch_item: FetchItem
    entity_name: str
    output_type: str = "sqlite"
    output_dir: str | Path | None = None
    filename: str | None = None
    table_name: str | None = None
    max_pages: int | None = None
    scrape_details: bool = False
    skip_item_requests_stats: bool = False
