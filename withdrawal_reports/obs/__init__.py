"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware
from .metrics import (
    DATASET_ROWS_GAUGE,
    REPORT_FAILURE_COUNTER,
    REPORTS_GENERATED_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    UPLOAD_COUNTER,
    PrometheusMiddleware,
    metrics_router,
    record_report_failure,
    report_dataset_size,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    pipeline_span,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "DATASET_ROWS_GAUGE",
    "PrometheusMiddleware",
    "REPORT_FAILURE_COUNTER",
    "REPORTS_GENERATED_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "UPLOAD_COUNTER",
    "metrics_router",
    "record_report_failure",
    "report_dataset_size",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "pipeline_span",
]
