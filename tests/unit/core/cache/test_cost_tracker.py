"""Tests for daily AI cost tracking."""

from __future__ import annotations

import logging

import pytest

from tempo.core.cache.cost_tracker import CostTracker

# FakeClock starts at 2025-06-15 15:06:40 UTC.
TODAY = "2025-06-15"


class FakeCostStore:
    def __init__(self) -> None:
        self.rows: dict[tuple[str, str], tuple[float, int]] = {}

    def save_cost(self, user_id, date, cost, request_count):
        self.rows[(user_id, date)] = (cost, request_count)

    def load_costs(self, date):
        return [(u, c, n) for (u, d), (c, n) in self.rows.items() if d == date]


class TestCostTracker:
    def test_record_accumulates(self, clock):
        tracker = CostTracker(daily_budget=0.10, clock=clock)
        tracker.record("alice", 0.03)
        usage = tracker.record("alice", 0.04)
        assert usage.request_count == 2
        assert usage.total_cost == pytest.approx(0.07)
        assert usage.date == TODAY

    def test_over_budget_only_after_exceeding(self, clock):
        tracker = CostTracker(daily_budget=0.05, clock=clock)
        tracker.record("alice", 0.05)
        assert not tracker.is_over_budget("alice")
        tracker.record("alice", 0.01)
        assert tracker.is_over_budget("alice")
        assert not tracker.is_over_budget("bob")

    def test_budget_check_does_not_register_user(self, clock):
        tracker = CostTracker(daily_budget=0.10, clock=clock)
        tracker.record("alice", 0.04)
        for user in ("bob", "carol", "dave"):
            assert not tracker.is_over_budget(user)

        report = tracker.report()
        assert report["active_users"] == 1
        assert report["average_cost_per_user"] == 0.04
        assert report["budget_utilization"] == 40.0

    def test_budget_warning_logged_once(self, clock, caplog):
        tracker = CostTracker(daily_budget=0.01, clock=clock)
        with caplog.at_level(logging.WARNING):
            tracker.record("alice", 0.02)
            tracker.record("alice", 0.02)
        warnings = [r for r in caplog.records if "cache-only mode" in r.getMessage()]
        assert len(warnings) == 1

    def test_budget_resets_next_day(self, clock):
        tracker = CostTracker(daily_budget=0.01, clock=clock)
        tracker.record("alice", 0.02)
        clock.advance(24 * 3600)
        assert not tracker.is_over_budget("alice")

    def test_report(self, clock):
        tracker = CostTracker(daily_budget=0.10, clock=clock)
        tracker.record("alice", 0.04)
        tracker.record("bob", 0.02)
        tracker.record("bob", 0.02)

        report = tracker.report()

        assert report["date"] == TODAY
        assert report["total_cost"] == 0.08
        assert report["average_cost_per_user"] == 0.04
        assert report["total_requests"] == 3
        assert report["active_users"] == 2
        assert report["budget_utilization"] == 40.0

    def test_report_for_empty_day(self, clock):
        report = CostTracker(clock=clock).report("2020-01-01")
        assert report["active_users"] == 0
        assert report["average_cost_per_user"] == 0.0
        assert report["budget_utilization"] == 0.0

    def test_store_survives_restart(self, clock):
        store = FakeCostStore()
        CostTracker(daily_budget=0.05, store=store, clock=clock).record("alice", 0.06)

        restarted = CostTracker(daily_budget=0.05, store=store, clock=clock)
        assert restarted.is_over_budget("alice")
        assert restarted.report()["total_requests"] == 1

    def test_cleanup_drops_old_days(self, clock):
        tracker = CostTracker(clock=clock)
        tracker.record("alice", 0.01)
        clock.advance(10 * 24 * 3600)
        tracker.record("alice", 0.01)
        assert tracker.cleanup(keep_days=7) == 1

    def test_budget_check_reads_store_without_writing(self, clock):
        store = FakeCostStore()
        tracker = CostTracker(daily_budget=0.05, store=store, clock=clock)
        assert not tracker.is_over_budget("alice")
        assert store.rows == {}
