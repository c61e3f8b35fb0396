"""
In-Memory Metrics Store

Counters and duration histograms for the HTTP surface. Histograms retain the
most recent samples per name; the oldest sample is dropped on overflow, so
summaries approximate recent behaviour rather than a precise time window.

Mutations are plain synchronous dict/deque operations with no await between
read and write, which keeps them consistent on a single event loop.
"""

from __future__ import annotations

from collections import defaultdict, deque
from typing import Any, Dict, Iterable, Optional

from src.utils.logging import get_logger

logger = get_logger(__name__)

MAX_HISTOGRAM_SAMPLES = 1000


class MetricsStore:
    """
    Process-lifetime store of counters and duration samples.

    Usage:
        store = MetricsStore()
        store.increment("requests_total")
        store.record_duration("request_duration", 42)
        store.get_histogram_buckets("request_duration", [1, 5, 10])
    """

    def __init__(self, max_samples: int = MAX_HISTOGRAM_SAMPLES):
        self._max_samples = max_samples
        self._counters: Dict[str, int] = defaultdict(int)
        self._histograms: Dict[str, deque[float]] = {}

    def increment(self, name: str, value: int = 1) -> None:
        self._counters[name] += value

    def record_duration(self, name: str, duration_ms: float) -> None:
        samples = self._histograms.get(name)
        if samples is None:
            samples = deque(maxlen=self._max_samples)
            self._histograms[name] = samples
        samples.append(duration_ms)

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_samples(self, name: str) -> list[float]:
        return list(self._histograms.get(name, ()))

    def get_histogram_buckets(
        self, name: str, buckets: Iterable[float]
    ) -> Dict[float, int]:
        """
        Count retained samples at or below each bucket boundary.

        Args:
            name: Histogram name
            buckets: Upper bounds in seconds; samples are stored in milliseconds

        Returns:
            Mapping of bucket boundary to cumulative sample count
        """
        samples = self._histograms.get(name, ())
        return {
            bucket: sum(1 for sample in samples if sample <= bucket * 1000)
            for bucket in buckets
        }

    def get_all_metrics(self) -> Dict[str, Any]:
        histograms = {}
        for name, samples in self._histograms.items():
            count = len(samples)
            histograms[name] = {
                "count": count,
                "avg": sum(samples) / count if count else 0,
                "min": min(samples) if count else 0,
                "max": max(samples) if count else 0,
            }
        return {"counters": dict(self._counters), "histograms": histograms}

    def reset(self) -> None:
        self._counters.clear()
        self._histograms.clear()


class MetricsRecorder:
    """Records request- and review-level metrics into a MetricsStore."""

    def __init__(self, store: Optional[MetricsStore] = None):
        self.store = store or MetricsStore()

    def record_request(self, method: str, path: str, status: int, duration_ms: float) -> None:
        self.store.increment("requests_total")
        self.store.increment(f"requests_{method.lower()}_total")

        if 200 <= status < 400:
            self.store.increment("requests_success")
        else:
            self.store.increment("requests_error")

        self.store.record_duration("request_duration", duration_ms)

        logger.debug(
            "Request metrics recorded",
            extra={"method": method, "path": path, "status": status, "duration_ms": duration_ms},
        )

    def record_review(self, success: bool, duration_ms: float, urls_count: int) -> None:
        self.store.increment("reviews_total")
        self.store.increment("urls_processed_total", urls_count)

        if success:
            self.store.increment("reviews_success")
        else:
            self.store.increment("reviews_error")

        self.store.record_duration("review_duration", duration_ms)

        logger.debug(
            "Review metrics recorded",
            extra={"success": success, "duration_ms": duration_ms, "urls_count": urls_count},
        )
