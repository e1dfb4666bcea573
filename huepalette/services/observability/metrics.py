"""
Observability metrics for the huepalette extraction pipeline.

Counters for extractions, segmentation fallbacks and failures by type, plus
per-operation timing and memory statistics gathered by ``performance_monitor``.
"""

import threading
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import psutil
from loguru import logger

MAX_STATS_PER_OPERATION = 100


@dataclass
class PerformanceMetrics:
    """One timed operation."""
    operation_name: str
    duration_ms: float
    memory_usage_mb: float
    timestamp: float
    context: Dict[str, Any]
    error: Optional[str] = None


class MetricsCollector:
    """Thread-safe metrics collector shared by concurrent extraction runs."""

    def __init__(self, max_history: int = 1000):
        self.max_history = max_history
        self._lock = threading.RLock()
        self._metrics_history: deque = deque(maxlen=max_history)
        self._counters: Dict[str, int] = defaultdict(int)
        self._failure_counts: Dict[str, int] = defaultdict(int)
        self._operation_counts: Dict[str, int] = defaultdict(int)
        self._error_counts: Dict[str, int] = defaultdict(int)
        self._performance_stats: Dict[str, List[Dict[str, float]]] = defaultdict(list)

    def increment(self, counter: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[counter] += amount

    def increment_extraction_count(self) -> None:
        self.increment("extractions_total")

    def increment_fallback_count(self) -> None:
        self.increment("segmentation_fallback_total")

    def increment_failure_count(self, failure_type: str) -> None:
        with self._lock:
            self._failure_counts[failure_type] += 1

    def get_counter(self, counter: str) -> int:
        with self._lock:
            return self._counters.get(counter, 0)

    def get_failure_count(self, failure_type: str) -> int:
        with self._lock:
            return self._failure_counts.get(failure_type, 0)

    def record_performance(self, metrics: PerformanceMetrics) -> None:
        """Record performance metrics for an operation."""
        with self._lock:
            self._metrics_history.append(metrics)
            self._operation_counts[metrics.operation_name] += 1

            if metrics.error:
                self._error_counts[metrics.operation_name] += 1

            stats = self._performance_stats[metrics.operation_name]
            stats.append({
                "duration_ms": metrics.duration_ms,
                "memory_mb": metrics.memory_usage_mb,
            })
            if len(stats) > MAX_STATS_PER_OPERATION:
                stats.pop(0)

    def get_operation_stats(self, operation_name: str) -> Dict[str, Any]:
        """Aggregated statistics for one operation (empty if never seen)."""
        with self._lock:
            stats = self._performance_stats.get(operation_name)
            if not stats:
                return {}

            durations = [s["duration_ms"] for s in stats]
            memory_usage = [s["memory_mb"] for s in stats]
            calls = self._operation_counts[operation_name]

            return {
                "operation_name": operation_name,
                "total_calls": calls,
                "error_count": self._error_counts[operation_name],
                "error_rate": self._error_counts[operation_name] / max(1, calls),
                "duration_stats": {
                    "mean_ms": float(np.mean(durations)),
                    "median_ms": float(np.median(durations)),
                    "p95_ms": float(np.percentile(durations, 95)),
                    "min_ms": float(np.min(durations)),
                    "max_ms": float(np.max(durations)),
                },
                "memory_stats": {
                    "mean_mb": float(np.mean(memory_usage)),
                    "peak_mb": float(np.max(memory_usage)),
                },
            }

    def get_all_stats(self) -> Dict[str, Any]:
        """Counters plus aggregated statistics for every operation."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "failures": dict(self._failure_counts),
                "operations": {
                    name: self.get_operation_stats(name) for name in self._operation_counts
                },
                "total_operations": sum(self._operation_counts.values()),
                "total_errors": sum(self._error_counts.values()),
            }

    def get_recent_metrics(self, limit: int = 10) -> List[Dict[str, Any]]:
        with self._lock:
            return [asdict(metric) for metric in list(self._metrics_history)[-limit:]]

    def reset(self) -> None:
        with self._lock:
            self._metrics_history.clear()
            self._counters.clear()
            self._failure_counts.clear()
            self._operation_counts.clear()
            self._error_counts.clear()
            self._performance_stats.clear()


# Global metrics collector instance
_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return _metrics_collector


def reset_metrics() -> None:
    """Clear all recorded metrics (used between tests)."""
    _metrics_collector.reset()


def _rss_mb() -> float:
    return psutil.Process().memory_info().rss / 1024 / 1024


@contextmanager
def performance_monitor(operation_name: str, **context: Any):
    """
    Time a block and record its duration and resident memory.

    Args:
        operation_name: Stage name, e.g. "segmentation" or "clustering"
        **context: Extra fields stored with the measurement (request id, sizes)
    """
    start_time = time.perf_counter()
    start_memory = _rss_mb()
    error_msg = None

    try:
        yield
    except Exception as e:
        error_msg = str(e)
        raise
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        metrics = PerformanceMetrics(
            operation_name=operation_name,
            duration_ms=duration_ms,
            memory_usage_mb=max(_rss_mb(), start_memory),
            timestamp=time.time(),
            context=context,
            error=error_msg,
        )
        _metrics_collector.record_performance(metrics)

        if error_msg:
            logger.error(f"Operation {operation_name} failed after {duration_ms:.1f}ms: {error_msg}")
        else:
            logger.debug(
                f"Operation {operation_name} completed in {duration_ms:.1f}ms "
                f"(memory: {metrics.memory_usage_mb:.1f}MB)"
            )
