"""
Run a LinkedIn listing scrape from CLI.
"""

from __future__ import annotations

import argparse
import asyncio
import json

from scraper.client import ApiClient
from scraper.config import OUTPUT_TYPES, get_output_settings
from scraper.linkedin import LinkedinScraper
from scraper.logging_utils import configure_logging
from scraper.stats import RunStats

ENTITIES = ("jobs", "companies", "profiles", "posts")


def _query_pair(raw: str) -> tuple[str, str]:
    key, separator, value = raw.partition("=")
    if not separator or not key.strip():
        raise argparse.ArgumentTypeError(f"Invalid query '{raw}'. Use KEY=VALUE.")
    return key.strip(), value.strip()


def build_parser() -> argparse.ArgumentParser:
    settings = get_output_settings()
    parser = argparse.ArgumentParser(description="Scrape a paginated LinkedIn listing.")
    parser.add_argument("--entity", choices=ENTITIES, required=True)
    parser.add_argument(
        "--query",
        action="append",
        type=_query_pair,
        default=[],
        help="Search parameter as KEY=VALUE. Repeatable.",
    )
    parser.add_argument("--output-type", choices=OUTPUT_TYPES, default=settings.output_type)
    parser.add_argument("--output-dir", default=settings.output_dir)
    parser.add_argument(
        "--scrape-details",
        action=argparse.BooleanOptionalAction,
        default=settings.scrape_details,
        help="Fetch the detail record of every listed item.",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


async def _run(args: argparse.Namespace) -> RunStats:
    async with ApiClient() as client:
        scraper = LinkedinScraper(client)
        scrape = getattr(scraper, f"scrape_{args.entity}")
        return await scrape(
            dict(args.query),
            output_type=args.output_type,
            output_dir=args.output_dir,
            scrape_details=args.scrape_details,
        )


def main() -> int:
    args = build_parser().parse_args()
    configure_logging(args.log_level)
    stats = asyncio.run(_run(args))
    print(json.dumps(stats.to_dict(), indent=2))
    return 1 if stats.error is not None else 0


if __name__ == "__main__":
    raise SystemExit(main())
