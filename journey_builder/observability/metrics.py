"""
In-process metrics for journey compilation, submission and API traffic.
"""
import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Timer series keep only the most recent samples
MAX_TIMER_SAMPLES = 100

# Metric names
JOURNEYS_COMPILED = "journeys.compiled"
JOURNEYS_SUBMITTED = "journeys.submitted"
JOURNEY_SUBMIT_FAILURES = "journeys.submit_failures"
JOURNEY_COMPILE_TIME = "journeys.compile_time_ms"
TIMING_FALLBACKS = "timing.fallbacks"
HTTP_REQUESTS = "http.requests"
HTTP_REQUEST_TIME = "http.request_time_ms"


class MetricsService:
    """Counters and timers kept in memory for the lifetime of the process."""

    def __init__(self):
        self.counters: Dict[str, int] = {}
        self.timers: Dict[str, List[float]] = {}

    def increment(self, metric_name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
        """Increment a counter metric."""
        key = self._make_key(metric_name, tags)
        self.counters[key] = self.counters.get(key, 0) + value

    def timer(self, metric_name: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
        """Record a timer sample."""
        samples = self.timers.setdefault(self._make_key(metric_name, tags), [])
        samples.append(duration_ms)
        if len(samples) > MAX_TIMER_SAMPLES:
            del samples[:-MAX_TIMER_SAMPLES]

    def count(self, metric_name: str, tags: Optional[Dict[str, str]] = None) -> int:
        return self.counters.get(self._make_key(metric_name, tags), 0)

    def snapshot(self) -> Dict[str, Any]:
        """All counters plus summary stats of every timer series."""
        return {
            "counters": dict(self.counters),
            "timers": {key: self._stats(values) for key, values in self.timers.items()},
        }

    def reset(self) -> None:
        self.counters.clear()
        self.timers.clear()

    def _stats(self, values: List[float]) -> Dict[str, float]:
        if not values:
            return {}
        return {"count": len(values), "avg": sum(values) / len(values), "max": max(values)}

    def _make_key(self, metric_name: str, tags: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for a metric with tags."""
        if not tags:
            return metric_name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{metric_name}[{tag_str}]"


# Global metrics instance
_metrics_service = None


def get_metrics_service() -> MetricsService:
    """Get the global metrics service instance."""
    global _metrics_service
    if _metrics_service is None:
        _metrics_service = MetricsService()
    return _metrics_service


def increment_metric(name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
    """Convenience function to increment a metric."""
    get_metrics_service().increment(name, value, tags)


def timer_metric(name: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
    """Convenience function to record a timer metric."""
    get_metrics_service().timer(name, duration_ms, tags)
