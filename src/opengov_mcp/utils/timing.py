"""Timing utilities for tool latency tracking."""

import time
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Dict, List, Optional

from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TimingStat:
    """Statistics for a timed operation."""

    count: int = 0
    errors: int = 0
    total_ms: float = 0.0
    max_ms: float = 0.0
    timings: List[float] = field(default_factory=list)

    def add(self, duration_ms: float, success: bool = True) -> None:
        self.count += 1
        if not success:
            self.errors += 1
        self.total_ms += duration_ms
        self.max_ms = max(self.max_ms, duration_ms)
        self.timings.append(duration_ms)

    @property
    def mean_ms(self) -> float:
        return self.total_ms / self.count if self.count > 0 else 0.0

    def percentile(self, p: float) -> float:
        """Calculate percentile (p in [0, 100])."""
        if not self.timings:
            return 0.0
        sorted_timings = sorted(self.timings)
        idx = min(int(len(sorted_timings) * p / 100), len(sorted_timings) - 1)
        return sorted_timings[idx]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "errors": self.errors,
            "mean_ms": round(self.mean_ms, 3),
            "max_ms": round(self.max_ms, 3),
            "p50_ms": round(self.percentile(50), 3),
            "p95_ms": round(self.percentile(95), 3),
        }


class LatencyTracker:
    """Thread-safe tracker for per-operation latency."""

    def __init__(self, window_size: Optional[int] = None):
        """
        Args:
            window_size: Maximum number of timings kept per operation.
                        If None, keeps all timings.
        """
        self._stats: Dict[str, TimingStat] = defaultdict(TimingStat)
        self._lock = Lock()
        self._window_size = window_size
        self._start_time = time.time()

    def record(self, operation: str, duration_ms: float, success: bool = True) -> None:
        with self._lock:
            stat = self._stats[operation]
            stat.add(duration_ms, success)
            if self._window_size and len(stat.timings) > self._window_size:
                stat.timings = stat.timings[-self._window_size :]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {op: stat.to_dict() for op, stat in self._stats.items()}

    def reset(self) -> None:
        with self._lock:
            self._stats.clear()
            self._start_time = time.time()

    def get_uptime_seconds(self) -> float:
        return time.time() - self._start_time


_global_tracker = LatencyTracker(window_size=10000)


def get_latency_tracker() -> LatencyTracker:
    """Get the global latency tracker instance."""
    return _global_tracker


@contextmanager
def TimingContext(operation: str, log_level: str = "debug"):
    """
    Context manager for timing a block of code.

    The yielded dict may be updated with ``success=False`` to count the
    block as failed.

    Example:
        with TimingContext("tool.search") as ctx:
            result = await handler(args)
            ctx["success"] = not result.isError
    """
    start_time = time.perf_counter()
    context_data: Dict[str, Any] = {"success": True}
    try:
        yield context_data
    except BaseException:
        context_data["success"] = False
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        _global_tracker.record(operation, duration_ms, context_data["success"])

        log_fn = getattr(logger, log_level, logger.debug)
        log_fn(
            f"{operation} completed in {duration_ms:.3f}ms",
            extra={
                "event": "timing",
                "operation": operation,
                "duration_ms": round(duration_ms, 3),
                "success": context_data["success"],
            },
        )
