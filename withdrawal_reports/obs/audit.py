"""Request audit trail middleware."""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import uuid4

import boto3
from botocore.exceptions import ClientError  # type: ignore[import-untyped]
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from withdrawal_reports.core.config import Settings

PANEL_QUERY_PARAM = "id"


@dataclass(slots=True)
class AuditLogRecord:
    """Structured log entry emitted by the middleware."""

    timestamp: str
    request_id: str
    method: str
    path: str
    panel: str | None
    status: int
    duration_ms: float
    content_length: int | None
    ip_address: str | None

    def to_json(self) -> str:
        payload = asdict(self)
        payload["duration_ms"] = round(self.duration_ms, 2)
        return json.dumps(payload, default=str)

    def to_dict(self) -> dict[str, Any]:
        return json.loads(self.to_json())


class AuditMiddleware(BaseHTTPMiddleware):
    """Logs one audit record per request and optionally appends it to S3.

    Records are written to a daily object under ``audit_log_prefix`` when
    ``audit_log_bucket`` is configured; otherwise they only go to the
    ``audit`` logger.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        settings: Settings,
        logger: logging.Logger | None = None,
        s3_client_factory: Callable[[], Any] | None = None,
    ) -> None:
        super().__init__(app)
        self._settings = settings
        self._logger = logger or logging.getLogger("audit")
        self._s3_client_factory = s3_client_factory or self._default_client_factory
        self._s3_client: Any | None = None
        self._bucket_ready = False

    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        response = await call_next(request)

        content_length = request.headers.get("content-length")
        record = AuditLogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            panel=request.query_params.get(PANEL_QUERY_PARAM),
            status=response.status_code,
            duration_ms=(time.perf_counter() - start) * 1000,
            content_length=int(content_length) if content_length and content_length.isdigit() else None,
            ip_address=request.client.host if request.client else None,
        )

        self._logger.info(record.to_json())
        self._persist_to_s3(record)

        response.headers["X-Request-ID"] = request_id
        return response

    def _default_client_factory(self) -> Any:
        return boto3.client(
            "s3",
            region_name=self._settings.aws_region,
            endpoint_url=self._settings.s3_endpoint_url,
        )

    def _get_s3_client(self) -> Any:
        if self._s3_client is None:
            self._s3_client = self._s3_client_factory()
        return self._s3_client

    def _ensure_bucket(self, client: Any, bucket: str) -> None:
        if self._bucket_ready:
            return
        try:
            client.head_bucket(Bucket=bucket)
        except ClientError:
            create_params: dict[str, Any] = {"Bucket": bucket}
            if self._settings.aws_region != "us-east-1" and self._settings.s3_endpoint_url is None:
                create_params["CreateBucketConfiguration"] = {"LocationConstraint": self._settings.aws_region}
            client.create_bucket(**create_params)
        self._bucket_ready = True

    def _persist_to_s3(self, record: AuditLogRecord) -> None:
        bucket = self._settings.audit_log_bucket
        if not bucket or self._settings.audit_log_sample_rate <= 0:
            return
        if self._settings.audit_log_sample_rate < 1 and random.random() > self._settings.audit_log_sample_rate:
            return

        try:
            client = self._get_s3_client()
            self._ensure_bucket(client, bucket)
            key = self._daily_key()
            try:
                existing = client.get_object(Bucket=bucket, Key=key)["Body"].read()
            except client.exceptions.NoSuchKey:  # type: ignore[attr-defined]
                existing = b""
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") in {"404", "NoSuchKey"}:
                    existing = b""
                else:
                    raise
            payload = record.to_json().encode("utf-8") + b"\n"
            client.put_object(
                Bucket=bucket,
                Key=key,
                Body=existing + payload,
                ContentType="application/json",
            )
        except Exception as exc:  # pragma: no cover - S3 connectivity issues
            self._logger.error("failed to persist audit record", extra={"error": str(exc)})

    def _daily_key(self) -> str:
        now = datetime.now(timezone.utc)
        prefix = self._settings.audit_log_prefix.rstrip("/")
        return f"{prefix}/{now:%Y/%m/%d}/audit.log"


__all__ = ["AuditLogRecord", "AuditMiddleware"]
