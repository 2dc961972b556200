"""
Shared terminal state for one scrape run.
"""

from __future__ import annotations

from typing import Any


class RunControl:
    """
    Terminal flag plus the error that caused it.

    Page workers, the item processor and the store share one instance. Once
    marked, no new page or item work is admitted.
    """

    def __init__(self) -> None:
        self._done = False
        self._error: Any = None

    @property
    def error(self) -> Any:
        return self._error

    def is_done(self) -> bool:
        return self._done

    def mark_fatal(self, error: Any = None) -> None:
        self._done = True
        if error is not None:
            self._error = error

    def add_error(self, error: Any) -> None:
        """
        Mark the run fatal, keeping any error recorded before this one.
        """

        errors = [*self.errors(), error]
        self.mark_fatal(errors if len(errors) > 1 else error)

    def errors(self) -> list[Any]:
        if self._error is None:
            return []
        return list(self._error) if isinstance(self._error, list) else [self._error]
