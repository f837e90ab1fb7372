"""
Latency tracking utilities for the scoring service.
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Optional

import numpy as np


class PerformanceMetrics:
    """Track and report performance metrics."""

    def __init__(self):
        self.metrics: Dict[str, list] = {}
        self._lock = threading.Lock()

    def record(self, metric_name: str, value: float):
        """
        Record a metric value.

        Args:
            metric_name: Name of the metric
            value: Metric value
        """
        with self._lock:
            self.metrics.setdefault(metric_name, []).append(value)

    def get_stats(self, metric_name: str) -> Dict[str, float]:
        """
        Get statistics for a metric.

        Args:
            metric_name: Name of the metric

        Returns:
            Dictionary with mean, std, min, max, median, count
        """
        with self._lock:
            if not self.metrics.get(metric_name):
                return {}
            values = np.array(self.metrics[metric_name])

        return {
            "mean": float(np.mean(values)),
            "std": float(np.std(values)),
            "min": float(np.min(values)),
            "max": float(np.max(values)),
            "median": float(np.median(values)),
            "count": len(values)
        }

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Get summary of all metrics."""
        return {name: self.get_stats(name) for name in list(self.metrics.keys())}

    def reset(self):
        """Clear all metrics."""
        with self._lock:
            self.metrics.clear()


@contextmanager
def timer(metric_name: str, metrics: Optional[PerformanceMetrics] = None):
    """
    Context manager for timing code blocks.

    Yields a dict whose ``elapsed_ms`` key is filled in on exit.

    Example:
        >>> metrics = PerformanceMetrics()
        >>> with timer("scoring_ms", metrics) as t:
        ...     pass
        >>> t["elapsed_ms"] >= 0
        True
    """
    result = {"elapsed_ms": 0.0}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["elapsed_ms"] = (time.perf_counter() - start) * 1000.0
        if metrics:
            metrics.record(metric_name, result["elapsed_ms"])
