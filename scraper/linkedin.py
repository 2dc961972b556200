"""
LinkedIn listing endpoints and ready-made listing scrapes.
"""

from __future__ import annotations

from typing import Any

from scraper.client import ApiClient
from scraper.listing import ListingScraper
from scraper.stats import RunStats
from scraper.types import DetailItem, FetchItem, FetchList, ListingPage, ListingScraperOptions, ShortItem

JOBS_MAX_PAGES = 40
COMPANIES_MAX_PAGES = 100
PROFILES_MAX_PAGES = 100
POSTS_MAX_PAGES = 100


class LinkedinScraper:
    """
    Lookups, searches and full listing scrapes against the LinkedIn API paths.

    `scrape_*` methods accept the search query plus any output option of
    `ListingScraperOptions` (`output_type`, `output_dir`, `filename`,
    `table_name`, `scrape_details`). The page ceiling and entity name are
    fixed per entity.
    """

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_profile(self, *, public_identifier: str) -> DetailItem:
        payload = await self._client.fetch_api(
            "linkedin/profile", {"publicIdentifier": public_identifier}
        )
        return DetailItem.model_validate(payload)

    async def search_profiles(self, query: dict[str, Any]) -> ListingPage:
        return ListingPage.model_validate(
            await self._client.fetch_api("linkedin/profile-search", query)
        )

    async def get_company(self, *, universal_name: str) -> DetailItem:
        payload = await self._client.fetch_api(
            "linkedin/company", {"universalName": universal_name}
        )
        return DetailItem.model_validate(payload)

    async def search_companies(self, query: dict[str, Any]) -> ListingPage:
        return ListingPage.model_validate(
            await self._client.fetch_api("linkedin/company-search", query)
        )

    async def get_job(self, *, job_id: str) -> DetailItem:
        payload = await self._client.fetch_api("linkedin/job", {"jobId": job_id})
        return DetailItem.model_validate(payload)

    async def search_jobs(self, query: dict[str, Any]) -> ListingPage:
        return ListingPage.model_validate(
            await self._client.fetch_api("linkedin/job-search", query)
        )

    async def search_posts(self, query: dict[str, Any]) -> ListingPage:
        return ListingPage.model_validate(
            await self._client.fetch_api("linkedin/post-search", query)
        )

    async def scrape_jobs(self, query: dict[str, Any], **options: Any) -> RunStats:
        def fetch_item(item: ShortItem):
            return self.get_job(job_id=item["id"]) if item.get("id") else None

        return await self._scrape(
            entity_name="jobs",
            max_pages=JOBS_MAX_PAGES,
            fetch_list=self._pager(self.search_jobs, query),
            fetch_item=fetch_item,
            options=options,
        )

    async def scrape_companies(self, query: dict[str, Any], **options: Any) -> RunStats:
        def fetch_item(item: ShortItem):
            if not item.get("universalName"):
                return None
            return self.get_company(universal_name=item["universalName"])

        return await self._scrape(
            entity_name="companies",
            max_pages=COMPANIES_MAX_PAGES,
            fetch_list=self._pager(self.search_companies, query),
            fetch_item=fetch_item,
            options=options,
        )

    async def scrape_profiles(self, query: dict[str, Any], **options: Any) -> RunStats:
        def fetch_item(item: ShortItem):
            if not item.get("publicIdentifier"):
                return None
            return self.get_profile(public_identifier=item["publicIdentifier"])

        return await self._scrape(
            entity_name="profiles",
            max_pages=PROFILES_MAX_PAGES,
            fetch_list=self._pager(self.search_profiles, query),
            fetch_item=fetch_item,
            options=options,
        )

    async def scrape_posts(self, query: dict[str, Any], **options: Any) -> RunStats:
        # Search results already carry the full post.
        async def passthrough(item: ShortItem) -> DetailItem:
            return DetailItem(id=item["id"], element=item)

        def fetch_item(item: ShortItem):
            return passthrough(item) if item.get("id") else None

        return await self._scrape(
            entity_name="posts",
            max_pages=POSTS_MAX_PAGES,
            fetch_list=self._pager(self.search_posts, query),
            fetch_item=fetch_item,
            options=options,
            skip_item_requests_stats=True,
        )

    async def test(self) -> dict[str, Any]:
        return await self._client.fetch_api("linkedin/test")

    @staticmethod
    def _pager(search, query: dict[str, Any]) -> FetchList:
        async def fetch_list(page: int) -> ListingPage:
            return await search({**query, "page": page})

        return fetch_list

    @staticmethod
    async def _scrape(
        *,
        entity_name: str,
        max_pages: int,
        fetch_list: FetchList,
        fetch_item: FetchItem,
        options: dict[str, Any],
        skip_item_requests_stats: bool = False,
    ) -> RunStats:
        # Per-entity values win over caller options of the same name.
        fixed = {
            "fetch_list": fetch_list,
            "fetch_item": fetch_item,
            "entity_name": entity_name,
            "max_pages": max_pages,
            "skip_item_requests_stats": skip_item_requests_stats,
        }
        scraper = ListingScraper(ListingScraperOptions(**{**options, **fixed}))
        return await scraper.run()
