"""Prometheus metrics for the HTTP surface and the report pipeline."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_LATENCY_SECONDS = Histogram(
    "http_request_latency_seconds",
    "Latency of HTTP requests in seconds.",
    labelnames=("method", "path"),
)
REQUEST_COUNTER = Counter(
    "http_requests_total",
    "Total number of HTTP requests processed.",
    labelnames=("method", "path", "status"),
)
REQUEST_ERROR_COUNTER = Counter(
    "http_request_errors_total",
    "Total number of HTTP requests that resulted in server errors.",
    labelnames=("method", "path", "status"),
)
UPLOAD_COUNTER = Counter(
    "dataset_uploads_total",
    "Spreadsheets successfully ingested, per panel.",
    labelnames=("panel",),
)
DATASET_ROWS_GAUGE = Gauge(
    "dataset_rows",
    "Rows currently held in the dataset store, per panel.",
    labelnames=("panel",),
)
REPORTS_GENERATED_COUNTER = Counter(
    "reports_generated_total",
    "Reports written successfully, per panel and mode.",
    labelnames=("panel", "mode"),
)
REPORT_FAILURE_COUNTER = Counter(
    "report_failures_total",
    "Report requests rejected or failed, per panel and reason.",
    labelnames=("panel", "reason"),
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware that records request metrics for Prometheus scraping."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:  # type: ignore[override]
        method = request.method
        path = request.url.path
        start_time = time.perf_counter()
        status = "500"

        try:
            response = await call_next(request)
            status = str(response.status_code)
            if response.status_code >= 500:
                REQUEST_ERROR_COUNTER.labels(method=method, path=path, status=status).inc()
            return response
        except Exception:
            REQUEST_ERROR_COUNTER.labels(method=method, path=path, status="500").inc()
            raise
        finally:
            latency = time.perf_counter() - start_time
            REQUEST_LATENCY_SECONDS.labels(method=method, path=path).observe(latency)
            REQUEST_COUNTER.labels(method=method, path=path, status=status).inc()


metrics_router = APIRouter(tags=["observability"])


@metrics_router.get("/metrics", include_in_schema=False)
def metrics_endpoint() -> Response:
    """Expose Prometheus metrics for scraping."""
    payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


def report_dataset_size(panel: str, rows: int) -> None:
    """Publish the number of rows held for ``panel``."""
    DATASET_ROWS_GAUGE.labels(panel=panel).set(max(0, rows))


def record_report_failure(panel: str, error: Exception) -> None:
    REPORT_FAILURE_COUNTER.labels(panel=panel, reason=type(error).__name__).inc()


__all__ = [
    "DATASET_ROWS_GAUGE",
    "PrometheusMiddleware",
    "REPORTS_GENERATED_COUNTER",
    "REPORT_FAILURE_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "UPLOAD_COUNTER",
    "metrics_endpoint",
    "metrics_router",
    "record_report_failure",
    "report_dataset_size",
]
