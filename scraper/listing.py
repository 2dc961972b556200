"""
Paginated listing scraper.

Fetches the first page to learn the page count and the concurrency the
source allows, then scrapes every page through a bounded queue and hands
each page's items to the item processor.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from scraper.errors import (
    NO_ITEMS_MESSAGE,
    QUOTA_EXCEEDED_STATUS,
    REQUEST_LIMIT_MESSAGE,
    StorageError,
)
from scraper.logging_utils import log_event
from scraper.processor import ItemProcessor
from scraper.queue import create_concurrent_queue
from scraper.run_control import RunControl
from scraper.stats import RunStats, StatsTracker
from scraper.storage import ItemStorage, create_item_storage
from scraper.types import ListingPage, ListingScraperOptions, RunIdentity

logger = logging.getLogger(__name__)


def _timestamp_slug(moment: datetime) -> str:
    utc = moment.astimezone(timezone.utc)
    return f"{utc.strftime('%Y-%m-%dT%H-%M-%S')}-{utc.microsecond // 1000:03d}Z"


def build_run_identity(
    options: ListingScraperOptions,
    *,
    run_id: str | None = None,
    started_at: datetime | None = None,
) -> RunIdentity:
    """
    Derive run id, start time, output path and table name for one run.
    """

    resolved_id = run_id or str(uuid.uuid4())
    resolved_start = started_at or datetime.now(timezone.utc)
    output_dir = Path(options.output_dir) if options.output_dir else Path.cwd() / "output"
    filename = options.filename or (
        f"{_timestamp_slug(resolved_start)}_{options.entity_name}_{resolved_id}"
    )
    return RunIdentity(
        run_id=resolved_id,
        started_at=resolved_start,
        output_path=(output_dir / filename).resolve(),
        table_name=options.table_name or f"{options.entity_name}_{resolved_id}",
    )


class ListingScraper:
    """
    Scrape every page of one listing into the configured output store.

    `run()` never raises for fetch, quota or storage failures: they end up in
    the returned stats' `error`.
    """

    def __init__(
        self,
        options: ListingScraperOptions,
        *,
        storage: ItemStorage | None = None,
    ) -> None:
        self._options = options
        self._control = RunControl()
        self._stats = StatsTracker()
        self.identity = build_run_identity(options)
        self.storage = storage or create_item_storage(
            options.output_type or "sqlite",
            identity=self.identity,
            run_control=self._control,
        )

    @property
    def run_control(self) -> RunControl:
        return self._control

    async def run(self) -> RunStats:
        entity = self._options.entity_name
        first_page = await self._fetch_page(1)

        total_pages = 0
        if first_page is not None and first_page.pagination is not None:
            total_pages = first_page.pagination.total_pages or 0
        if self._options.max_pages and total_pages > self._options.max_pages:
            total_pages = self._options.max_pages

        concurrency = 1
        if first_page is not None and first_page.user is not None:
            concurrency = first_page.user.requests_concurrency or 1

        if first_page is None or total_pages <= 0:
            self._control.mark_fatal(self._control.error or NO_ITEMS_MESSAGE)
            # Nothing was scraped; the first-page fetch is only visible as a request.
            self._stats.pages = 0
            self._stats.pages_success = 0
            log_event(
                logger,
                logging.ERROR,
                "listing_scrape_failed",
                entity=entity,
                run_id=self.identity.run_id,
                errors=self._control.errors(),
            )
            return self._stats.snapshot(error=self._control.error)

        log_event(
            logger,
            logging.INFO,
            "listing_scrape_started",
            entity=entity,
            run_id=self.identity.run_id,
            total_pages=total_pages,
            concurrency=concurrency,
            output_type=self._options.output_type,
        )

        self._stats.restart_clock()
        self._stats.pages = 1
        self._stats.pages_success = 1
        self.storage.start()
        processor = ItemProcessor(
            fetch_item=self._options.fetch_item,
            storage=self.storage,
            stats=self._stats,
            run_control=self._control,
            entity_name=entity,
            scrape_details=self._options.scrape_details,
            skip_item_requests_stats=self._options.skip_item_requests_stats,
        )

        scrape_page = create_concurrent_queue(concurrency, self._scrape_page)
        tasks = [
            scrape_page(processor, page, first_page if page == 1 else None)
            for page in range(1, total_pages + 1)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for page, result in enumerate(results, start=1):
            if isinstance(result, Exception):
                log_event(
                    logger,
                    logging.ERROR,
                    "listing_page_failed",
                    entity=entity,
                    page=page,
                    error=str(result),
                )

        await self._finalize()

        log_event(
            logger,
            logging.ERROR if self._control.error is not None else logging.INFO,
            "listing_scrape_completed",
            entity=entity,
            run_id=self.identity.run_id,
            pages=self._stats.pages,
            items_success=self._stats.items_success,
            requests=self._stats.requests,
            errors=self._control.errors(),
        )
        return self._stats.snapshot(error=self._control.error)

    async def _scrape_page(
        self,
        processor: ItemProcessor,
        page: int,
        scraped_list: ListingPage | None = None,
    ) -> None:
        if self._control.is_done():
            return
        listing = scraped_list if scraped_list is not None else await self._fetch_page(page)
        if self._control.is_done():
            return

        details: list[dict[str, Any]] = []
        if listing is not None and listing.elements:
            details = await processor.process(listing)
        if self._control.is_done():
            return

        log_event(
            logger,
            logging.INFO,
            "listing_page_scraped",
            entity=self._options.entity_name,
            page=page,
            items_found=len(details),
            requests_per_second=round(self._stats.requests_per_second(), 2),
        )

    async def _fetch_page(self, page: int) -> ListingPage | None:
        result: ListingPage | None
        try:
            raw = await self._options.fetch_list(page)
            result = raw if raw is None or isinstance(raw, ListingPage) else ListingPage.model_validate(raw)
        except ValidationError as exc:
            log_event(
                logger,
                logging.WARNING,
                "list_response_invalid",
                entity=self._options.entity_name,
                page=page,
                error=str(exc),
            )
            result = None
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "list_fetch_failed",
                entity=self._options.entity_name,
                page=page,
                error=str(exc),
            )
            result = None

        if result is not None and result.status == QUOTA_EXCEEDED_STATUS:
            error = result.error or REQUEST_LIMIT_MESSAGE
            self._control.mark_fatal(error)
            log_event(
                logger,
                logging.ERROR,
                "request_limit_exceeded",
                entity=self._options.entity_name,
                page=page,
                error=error,
            )
            return None

        self._stats.pages += 1
        self._stats.requests += 1
        if result is not None and result.id:
            self._stats.pages_success += 1
        return result

    async def _finalize(self) -> None:
        try:
            await self.storage.finalize(self._stats.snapshot(error=self._control.error))
        except StorageError as exc:
            self._control.add_error(str(exc))
