"""
Metrics Collection for the messaging core.

In-process counters and timers, exposed at /metrics.
"""

import functools
import threading
import time
from collections import defaultdict
from typing import Any, Callable, Dict

from campustrades.utils.timefmt import utcnow


class MetricsCollector:
    """Collects and manages messaging metrics."""

    COUNTERS = (
        "messages_sent_total",
        "conversations_started_total",
        "conversations_deleted_total",
        "flags_updated_total",
        "ratings_submitted_total",
        "backend_errors_total",
    )

    def __init__(self):
        self.metrics = defaultdict(int)
        self.timers = defaultdict(float)
        self.lock = threading.Lock()
        for name in self.COUNTERS:
            self.metrics[name] = 0

    def increment_counter(self, metric_name: str, value: int = 1):
        with self.lock:
            self.metrics[metric_name] += value

    def record_timer(self, metric_name: str, duration: float):
        with self.lock:
            self.timers[metric_name] += duration

    def get_metrics(self) -> Dict[str, Any]:
        """Get current metrics values."""
        with self.lock:
            return {
                "counters": dict(self.metrics),
                "timers": dict(self.timers),
                "timestamp": utcnow().isoformat()
            }

    def reset(self):
        with self.lock:
            self.metrics.clear()
            self.timers.clear()
            for name in self.COUNTERS:
                self.metrics[name] = 0

    def time_operation(self, metric_name: str) -> Callable:
        """Decorator accumulating the wall time of each call under ``metric_name``."""
        def decorator(func):
            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                start_time = time.perf_counter()
                try:
                    return func(*args, **kwargs)
                finally:
                    self.record_timer(metric_name, time.perf_counter() - start_time)
            return wrapper
        return decorator


# Global metrics instance
metrics_collector = MetricsCollector()
