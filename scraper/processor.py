"""
Per-page item resolution.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

from pydantic import ValidationError

from scraper.errors import QUOTA_EXCEEDED_STATUS, REQUEST_LIMIT_MESSAGE
from scraper.logging_utils import log_event
from scraper.queue import create_concurrent_queue
from scraper.run_control import RunControl
from scraper.stats import StatsTracker
from scraper.storage import ItemStorage
from scraper.types import DetailItem, FetchItem, ListingPage, ShortItem

logger = logging.getLogger(__name__)


class ItemProcessor:
    """
    Resolve the short items of one page into detail elements.

    Items of a page are resolved one at a time, in page order. Every resolved
    element goes through a single-slot queue into storage, so writes from
    concurrent pages never interleave.
    """

    def __init__(
        self,
        *,
        fetch_item: FetchItem,
        storage: ItemStorage,
        stats: StatsTracker,
        run_control: RunControl,
        entity_name: str,
        scrape_details: bool = False,
        skip_item_requests_stats: bool = False,
    ) -> None:
        self._fetch_item = fetch_item
        self._stats = stats
        self._run_control = run_control
        self._entity_name = entity_name
        self._scrape_details = scrape_details
        self._skip_item_requests_stats = skip_item_requests_stats
        self._write = create_concurrent_queue(1, storage.write)

    async def process(self, page: ListingPage) -> list[dict[str, Any]]:
        if not page.elements:
            return []

        details: list[dict[str, Any]] = []
        for item in page.elements:
            if self._run_control.is_done():
                break

            resolved: DetailItem | None
            if not isinstance(item, dict):
                resolved = None
            elif self._scrape_details:
                resolved = await self._fetch_detail(item)
                if resolved is not None and resolved.status == QUOTA_EXCEEDED_STATUS:
                    error = resolved.error or REQUEST_LIMIT_MESSAGE
                    self._run_control.mark_fatal(error)
                    log_event(
                        logger,
                        logging.ERROR,
                        "request_limit_exceeded",
                        entity=self._entity_name,
                        item_id=item.get("id"),
                        error=error,
                    )
                    return details
            else:
                resolved = DetailItem(
                    id=item.get("id"),
                    element=item,
                    status=page.status,
                    error=page.error,
                    query=page.query,
                )

            self._stats.items += 1
            if self._counts_request(resolved):
                self._stats.requests += 1

            if resolved is not None and resolved.element and resolved.id:
                self._stats.items_success += 1
                await self._write(resolved.element)
                details.append(resolved.element)

        return details

    def _counts_request(self, resolved: DetailItem | None) -> bool:
        if not self._scrape_details or self._skip_item_requests_stats:
            return False
        return not (resolved is not None and resolved.skipped)

    async def _fetch_detail(self, item: ShortItem) -> DetailItem | None:
        try:
            pending = self._fetch_item(item)
            if pending is None:
                return None
            result = await pending if inspect.isawaitable(pending) else pending
            if result is None or isinstance(result, DetailItem):
                return result
            return DetailItem.model_validate(result)
        except ValidationError as exc:
            log_event(
                logger,
                logging.WARNING,
                "item_response_invalid",
                entity=self._entity_name,
                item_id=item.get("id"),
                error=str(exc),
            )
            return None
        except Exception as exc:
            log_event(
                logger,
                logging.ERROR,
                "item_fetch_failed",
                entity=self._entity_name,
                item_id=item.get("id"),
                error=str(exc),
            )
            return None
