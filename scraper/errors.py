"""
Scraper-layer exceptions and source status constants.
"""

from __future__ import annotations

QUOTA_EXCEEDED_STATUS = 402
REQUEST_LIMIT_MESSAGE = "Request limit exceeded - upgrade your plan"
NO_ITEMS_MESSAGE = "Error fetching first page or no items found."


class ScraperError(Exception):
    """Base exception for listing scraper failures."""


class ApiRequestError(ScraperError):
    """Raised when the remote API cannot be reached or returns invalid JSON."""


class StorageError(ScraperError):
    """Raised when the output store cannot be opened or written."""
