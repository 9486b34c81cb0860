"""
Metrics Module: Diagnostics, counters, histograms.

- Counters: satellite_fixes_in, fixes_spoofed, locations_published, etc.
- Histograms: apparent speed, snap distance, queue depth
- Drop reason codes (no silent failures in the metrics)

Usage:
    from fusion_core.metrics import get_metrics

    metrics = get_metrics()
    metrics.increment('satellite_fixes_in')
    metrics.increment_drop('parse_error')
    metrics.record_histogram('road_snap_distance_m', 3.1)
"""

from .counters import MetricsCollector

# Global singleton for easy access
_global_metrics = None


def get_metrics() -> MetricsCollector:
    """
    Get the global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = MetricsCollector()
    return _global_metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = MetricsCollector()
    else:
        _global_metrics.reset()


__all__ = ['MetricsCollector', 'get_metrics', 'reset_metrics']
