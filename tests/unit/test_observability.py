from __future__ import annotations

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from withdrawal_reports.core.config import Settings
from withdrawal_reports.obs import (
    DATASET_ROWS_GAUGE,
    REPORT_FAILURE_COUNTER,
    AuditMiddleware,
    PrometheusMiddleware,
    metrics_router,
    pipeline_span,
    record_report_failure,
    report_dataset_size,
)
from withdrawal_reports.services.report_engine import NoDataInRangeError

AUDIT_TEST_LOGGER = "withdrawal_reports.tests.audit"


def _sample_value(metric, **labels) -> float:
    family = next(iter(metric.collect()))
    return next(
        sample.value
        for sample in family.samples
        if all(sample.labels.get(key) == value for key, value in labels.items())
        and not sample.name.endswith("_created")
    )


def test_metrics_endpoint_exposes_counters() -> None:
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware)
    app.include_router(metrics_router)

    client = TestClient(app)
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "http_requests_total" in response.text


def test_dataset_size_gauge_tracks_panel() -> None:
    report_dataset_size("gauge-panel", 12)
    assert _sample_value(DATASET_ROWS_GAUGE, panel="gauge-panel") == 12


def test_report_failures_are_counted_by_reason() -> None:
    error = NoDataInRangeError("none")
    record_report_failure("failure-panel", error)
    record_report_failure("failure-panel", error)

    assert _sample_value(REPORT_FAILURE_COUNTER, panel="failure-panel", reason="NoDataInRangeError") == 2


def test_pipeline_span_runs_without_tracing_configured() -> None:
    with pipeline_span("unit.test", panel="1", skipped=None) as span:
        assert span is not None


def _audited_app(settings: Settings, s3_client) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        AuditMiddleware,
        settings=settings,
        logger=logging.getLogger(AUDIT_TEST_LOGGER),
        s3_client_factory=lambda: s3_client,
    )

    @app.get("/api/ping")
    def ping() -> dict[str, str]:
        return {"status": "ok"}

    return app


def test_audit_middleware_logs_and_sets_request_id(audit_s3_client, caplog) -> None:
    app = _audited_app(Settings(audit_log_bucket=None), audit_s3_client)

    with caplog.at_level(logging.INFO, logger=AUDIT_TEST_LOGGER):
        response = TestClient(app).get("/api/ping", params={"id": "2"}, headers={"X-Request-ID": "req-1"})

    assert response.headers["X-Request-ID"] == "req-1"
    records = [json.loads(record.getMessage()) for record in caplog.records if record.name == AUDIT_TEST_LOGGER]
    assert records[-1]["path"] == "/api/ping"
    assert records[-1]["panel"] == "2"
    assert records[-1]["status"] == 200
    assert audit_s3_client.buckets == {}


def test_audit_middleware_appends_to_daily_s3_object(audit_s3_client) -> None:
    settings = Settings(audit_log_bucket="audit-bucket", audit_log_prefix="audit/requests/")
    client = TestClient(_audited_app(settings, audit_s3_client))

    client.get("/api/ping")
    client.get("/api/ping")

    objects = audit_s3_client.buckets["audit-bucket"]
    assert len(objects) == 1
    key, body = next(iter(objects.items()))
    assert key.startswith("audit/requests/") and key.endswith("/audit.log")
    lines = body.decode("utf-8").strip().splitlines()
    assert len(lines) == 2
    assert all(json.loads(line)["method"] == "GET" for line in lines)
