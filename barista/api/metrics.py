"""Prometheus scrape endpoint and request timing middleware."""
import time
from typing import Callable
from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from barista.core.metrics import record_http_request

router = APIRouter()

UNMATCHED_PATH = "unmatched"


def route_path(request: Request) -> str:
    """Route template such as /api/orders/{order_id}, so ids don't become labels."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_PATH


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts and times every HTTP request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            record_http_request(request.method, route_path(request), 500, time.perf_counter() - start)
            raise
        record_http_request(
            request.method, route_path(request), response.status_code, time.perf_counter() - start
        )
        return response


@router.get("/metrics", include_in_schema=False)
async def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
