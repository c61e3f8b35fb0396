from typing import List

from src.services.metrics.metrics_store import MetricsStore

DURATION_BUCKETS_SECONDS: List[float] = [1, 5, 10, 30, 60, 120, 300]


def _status_lines(store: MetricsStore, metric: str, prefix: str) -> List[str]:
    return [
        f'{metric}{{status="total"}} {store.get_counter(f"{prefix}_total")}',
        f'{metric}{{status="success"}} {store.get_counter(f"{prefix}_success")}',
        f'{metric}{{status="error"}} {store.get_counter(f"{prefix}_error")}',
    ]


def render_prometheus(store: MetricsStore) -> str:
    """Render request/review counters and the request duration histogram."""
    lines: List[str] = [
        "# HELP codereview_requests_total Total number of HTTP requests",
        "# TYPE codereview_requests_total counter",
        *_status_lines(store, "codereview_requests_total", "requests"),
        "",
        "# HELP codereview_reviews_total Total number of code reviews",
        "# TYPE codereview_reviews_total counter",
        *_status_lines(store, "codereview_reviews_total", "reviews"),
        "",
        "# HELP codereview_request_duration_seconds Duration of HTTP requests",
        "# TYPE codereview_request_duration_seconds histogram",
    ]

    buckets = store.get_histogram_buckets("request_duration", DURATION_BUCKETS_SECONDS)
    for bucket, count in buckets.items():
        lines.append(f'codereview_request_duration_seconds_bucket{{le="{bucket}"}} {count}')
    # +Inf reports every request served, including samples evicted from the window.
    lines.append(
        f'codereview_request_duration_seconds_bucket{{le="+Inf"}} {store.get_counter("requests_total")}'
    )

    return "\n".join(lines) + "\n"
