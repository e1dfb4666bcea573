"""
Observability for the huepalette extraction pipeline.

Counters, per-stage timings and memory sampling for extraction runs.
"""

from .metrics import (
    MetricsCollector,
    PerformanceMetrics,
    get_metrics_collector,
    performance_monitor,
    reset_metrics,
)

__all__ = [
    "MetricsCollector",
    "PerformanceMetrics",
    "get_metrics_collector",
    "performance_monitor",
    "reset_metrics",
]
