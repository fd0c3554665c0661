"""Prometheus metrics for HTTP traffic, model calls, storage and orders."""
import time
from contextlib import contextmanager
from typing import Iterator
from prometheus_client import Counter, Histogram

HTTP_REQUESTS = Counter(
    "barista_http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status"],
)
HTTP_REQUEST_DURATION = Histogram(
    "barista_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path", "status"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10),
)

AI_CALLS = Counter(
    "barista_ai_calls_total",
    "Total number of model API calls",
    ["model", "operation", "status"],
)
AI_ERRORS = Counter(
    "barista_ai_errors_total",
    "Total number of failed model API calls",
    ["model", "error_type"],
)
AI_CALL_DURATION = Histogram(
    "barista_ai_call_duration_seconds",
    "Model API call duration in seconds",
    ["model", "operation"],
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60),
)

DB_QUERY_DURATION = Histogram(
    "barista_db_query_duration_seconds",
    "Database query duration in seconds",
    ["operation", "table"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1),
)
VECTOR_SEARCH_DURATION = Histogram(
    "barista_vector_search_duration_seconds",
    "Semantic drink search duration in seconds",
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1, 2),
)

ORDERS = Counter(
    "barista_orders_total",
    "Orders by lifecycle event",
    ["status"],
)


@contextmanager
def track_ai_call(model: str, operation: str) -> Iterator[None]:
    """Time a model call and count it as a success or an error."""
    start = time.perf_counter()
    status = "success"
    try:
        yield
    except Exception as e:
        status = "error"
        AI_ERRORS.labels(model=model, error_type=type(e).__name__).inc()
        raise
    finally:
        AI_CALLS.labels(model=model, operation=operation, status=status).inc()
        AI_CALL_DURATION.labels(model=model, operation=operation).observe(
            time.perf_counter() - start
        )


def track_query(operation: str, table: str):
    return DB_QUERY_DURATION.labels(operation=operation, table=table).time()


def record_order(status: str) -> None:
    """Count an order reaching `status` (created, confirmed, completed, cancelled)."""
    ORDERS.labels(status=status).inc()


def record_http_request(method: str, path: str, status: int, duration: float) -> None:
    HTTP_REQUESTS.labels(method=method, path=path, status=str(status)).inc()
    HTTP_REQUEST_DURATION.labels(method=method, path=path, status=str(status)).observe(duration)
