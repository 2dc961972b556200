"""
Unit tests for StatsTracker, RunStats and RunControl.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from scraper.run_control import RunControl
from scraper.stats import RunStats, StatsTracker


@pytest.fixture()
def tracker() -> StatsTracker:
    return StatsTracker()


class TestStatsTracker:
    def test_starts_at_zero(self, tracker: StatsTracker) -> None:
        snapshot = tracker.snapshot()

        assert (snapshot.pages, snapshot.pages_success) == (0, 0)
        assert (snapshot.items, snapshot.items_success) == (0, 0)
        assert snapshot.requests == 0
        assert snapshot.error is None

    def test_snapshot_is_frozen_and_detached(self, tracker: StatsTracker) -> None:
        tracker.pages = 2
        snapshot = tracker.snapshot()
        tracker.pages = 5

        assert snapshot.pages == 2
        with pytest.raises(AttributeError):
            snapshot.pages = 9  # type: ignore[misc]

    def test_requests_per_second(self, tracker: StatsTracker) -> None:
        tracker.requests = 20
        now = tracker.requests_start_time + timedelta(seconds=4)

        assert tracker.requests_per_second(now) == pytest.approx(5.0)

    def test_requests_per_second_without_elapsed_time(self, tracker: StatsTracker) -> None:
        tracker.requests = 3

        assert tracker.requests_per_second(tracker.requests_start_time) == 0.0

    def test_restart_clock_moves_start_forward(self, tracker: StatsTracker) -> None:
        before = tracker.requests_start_time
        tracker.restart_clock()

        assert tracker.requests_start_time >= before


class TestRunStatsToDict:
    def test_serializes_start_time_and_single_error(self, tracker: StatsTracker) -> None:
        payload = tracker.snapshot(error="quota").to_dict()

        assert payload["requests_start_time"] == tracker.requests_start_time.isoformat()
        assert payload["error"] == ["quota"]

    def test_serializes_error_list_as_strings(self, tracker: StatsTracker) -> None:
        stats = tracker.snapshot(error=["Error creating SQLite database:", OSError("denied")])

        assert stats.to_dict()["error"] == ["Error creating SQLite database:", "denied"]

    def test_no_error_stays_none(self, tracker: StatsTracker) -> None:
        assert tracker.snapshot().to_dict()["error"] is None

    def test_is_dataclass_snapshot(self, tracker: StatsTracker) -> None:
        assert isinstance(tracker.snapshot(), RunStats)


class TestRunControl:
    def test_initially_running(self) -> None:
        control = RunControl()

        assert control.is_done() is False
        assert control.error is None
        assert control.errors() == []

    def test_mark_fatal_sets_flag_and_error(self) -> None:
        control = RunControl()
        control.mark_fatal("limit reached")

        assert control.is_done() is True
        assert control.error == "limit reached"

    def test_mark_fatal_without_error_keeps_previous(self) -> None:
        control = RunControl()
        control.mark_fatal("first")
        control.mark_fatal()

        assert control.error == "first"

    def test_add_error_accumulates(self) -> None:
        control = RunControl()
        control.add_error("first")
        control.add_error("second")

        assert control.is_done() is True
        assert control.error == ["first", "second"]

    def test_errors_flattens_list_error(self) -> None:
        control = RunControl()
        control.mark_fatal(["a", "b"])

        assert control.errors() == ["a", "b"]
