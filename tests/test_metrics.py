"""
Test observability counters and performance statistics.
"""
import pytest

from huepalette.services.observability import (
    MetricsCollector,
    PerformanceMetrics,
    get_metrics_collector,
    performance_monitor,
)


def _metric(name, duration_ms, error=None):
    return PerformanceMetrics(
        operation_name=name,
        duration_ms=duration_ms,
        memory_usage_mb=100.0,
        timestamp=0.0,
        context={},
        error=error,
    )


def test_counters():
    """Test extraction, fallback and failure counters."""
    collector = MetricsCollector()
    collector.increment_extraction_count()
    collector.increment_extraction_count()
    collector.increment_fallback_count()
    collector.increment_failure_count("timeout")

    assert collector.get_counter("extractions_total") == 2
    assert collector.get_counter("segmentation_fallback_total") == 1
    assert collector.get_failure_count("timeout") == 1
    assert collector.get_failure_count("validation") == 0


def test_operation_stats():
    """Test aggregated timing statistics."""
    collector = MetricsCollector()
    for duration in (10.0, 20.0, 30.0):
        collector.record_performance(_metric("clustering", duration))
    collector.record_performance(_metric("clustering", 40.0, error="boom"))

    stats = collector.get_operation_stats("clustering")
    assert stats["total_calls"] == 4
    assert stats["error_count"] == 1
    assert stats["error_rate"] == pytest.approx(0.25)
    assert stats["duration_stats"]["mean_ms"] == pytest.approx(25.0)
    assert stats["duration_stats"]["max_ms"] == 40.0
    assert collector.get_operation_stats("unknown") == {}


def test_all_stats_and_reset():
    """Test the combined view does not deadlock and reset clears it."""
    collector = MetricsCollector()
    collector.increment_extraction_count()
    collector.record_performance(_metric("sampling", 5.0))

    stats = collector.get_all_stats()
    assert stats["counters"] == {"extractions_total": 1}
    assert stats["total_operations"] == 1
    assert "sampling" in stats["operations"]
    assert len(collector.get_recent_metrics()) == 1

    collector.reset()
    assert collector.get_all_stats()["total_operations"] == 0
    assert collector.get_counter("extractions_total") == 0


def test_history_is_bounded():
    """Test the history deque respects max_history."""
    collector = MetricsCollector(max_history=3)
    for i in range(5):
        collector.record_performance(_metric("op", float(i)))
    recent = collector.get_recent_metrics(limit=10)
    assert [m["duration_ms"] for m in recent] == [2.0, 3.0, 4.0]


def test_performance_monitor_records_success():
    """Test the context manager records a timed operation."""
    with performance_monitor("decode", request_id="pal-1"):
        pass

    stats = get_metrics_collector().get_operation_stats("decode")
    assert stats["total_calls"] == 1
    assert stats["error_count"] == 0
    recent = get_metrics_collector().get_recent_metrics(1)[0]
    assert recent["context"] == {"request_id": "pal-1"}
    assert recent["memory_usage_mb"] > 0


def test_performance_monitor_reraises():
    """Test failures are recorded and propagated."""
    with pytest.raises(RuntimeError):
        with performance_monitor("formatting"):
            raise RuntimeError("bad palette")

    recent = get_metrics_collector().get_recent_metrics(1)[0]
    assert recent["error"] == "bad palette"
