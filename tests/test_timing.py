"""Tests for latency tracking."""

import pytest

from opengov_mcp.utils.timing import LatencyTracker, TimingContext, get_latency_tracker


def test_tracker_records_errors_and_percentiles():
    tracker = LatencyTracker()
    for ms in (10.0, 20.0, 30.0):
        tracker.record("op", ms)
    tracker.record("op", 40.0, success=False)

    stats = tracker.get_stats()["op"]

    assert stats["count"] == 4
    assert stats["errors"] == 1
    assert stats["max_ms"] == 40.0
    assert stats["mean_ms"] == 25.0
    assert stats["p50_ms"] == 30.0


def test_window_keeps_latest_timings():
    tracker = LatencyTracker(window_size=2)
    for ms in (1.0, 2.0, 3.0):
        tracker.record("op", ms)

    assert tracker._stats["op"].timings == [2.0, 3.0]


def test_timing_context_marks_failures():
    tracker = get_latency_tracker()
    tracker.reset()

    with TimingContext("tool.ok"):
        pass
    with pytest.raises(RuntimeError):
        with TimingContext("tool.bad"):
            raise RuntimeError("boom")

    stats = tracker.get_stats()
    assert stats["tool.ok"]["errors"] == 0
    assert stats["tool.bad"]["errors"] == 1
