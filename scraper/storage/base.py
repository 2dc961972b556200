"""
Storage layer interfaces for resolved listing items.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from scraper.stats import RunStats


class ItemStorage(ABC):
    """
    Append-only target for resolved detail elements.

    Callers serialize `write` calls; implementations are not safe under
    concurrent writes.
    """

    def start(self) -> None:
        """
        Begin opening the backing store in the background, if it needs one.
        """

    @abstractmethod
    async def write(self, element: dict[str, Any]) -> None:
        """
        Persist one resolved element. Failures are logged, not raised.
        """

    @abstractmethod
    async def finalize(self, stats: RunStats) -> None:
        """
        Flush buffered output and release the backing store.
        """
