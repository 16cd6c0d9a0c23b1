"""
Metrics collection for recurring occurrence generation.

Counters live in process memory; the sweep worker logs a snapshot after
each sweep.
"""

import functools
import threading
import time
from collections import defaultdict
from datetime import datetime
from typing import Any, Callable, Dict

import pytz


class MetricsCollector:
    """Collects counters and cumulative timings."""

    def __init__(self):
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()

        self.metrics["occurrences_generated_total"] = 0
        self.metrics["occurrences_pruned_total"] = 0
        self.metrics["buffer_topups_total"] = 0
        self.metrics["sweep_failures_total"] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        """Increment a counter metric."""
        with self.lock:
            self.metrics[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        """Add a duration to a timing metric."""
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        """Get a snapshot of current values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": dict(self.timers),
                "timestamp": datetime.now(pytz.utc).isoformat()
            }

    def reset(self):
        with self.lock:
            for name in list(self.metrics):
                self.metrics[name] = 0
            self.timers.clear()

    def occurrences_generated(self, count: int):
        self.increment_counter("occurrences_generated_total", count)

    def occurrences_pruned(self, count: int):
        self.increment_counter("occurrences_pruned_total", count)

    def buffer_topped_up(self):
        self.increment_counter("buffer_topups_total")

    def sweep_failure(self):
        self.increment_counter("sweep_failures_total")

    def time_operation(self, metric_name: str) -> Callable:
        """Decorator recording how long each call of the wrapped function takes."""
        def decorator(func):
            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.monotonic()
                try:
                    return func(*args, **kwargs)
                finally:
                    self.record_timer(metric_name, time.monotonic() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics_collector = MetricsCollector()
