"""Append-only history of uploads and generated reports."""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from withdrawal_reports.models import GeneratedReport, UploadedFile
from withdrawal_reports.models.base import utcnow
from withdrawal_reports.services.dates import annotate_date_only
from withdrawal_reports.services.datasets import DatasetStore

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class UploadRecord:
    panel: str
    original_filename: str | None
    storage_path: str
    merchants: Sequence[str]
    rows: Sequence[Mapping[str, Any]]
    uploaded_at: datetime = field(default_factory=utcnow)


@dataclass(slots=True, frozen=True)
class ReportRecord:
    panel: str
    start_date: str
    end_date: str
    mode: str
    merchant_percents: Mapping[str, Any]
    summary: Sequence[Mapping[str, Any]]
    download_url: str
    created_at: datetime = field(default_factory=utcnow)


class HistoryRepository:
    """Persists upload and report records through a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def record_upload(self, record: UploadRecord) -> UploadedFile:
        upload = UploadedFile(
            panel_id=record.panel,
            original_name=record.original_filename,
            file_path=record.storage_path,
            row_count=len(record.rows),
            merchants=list(record.merchants),
            data=[dict(row) for row in record.rows],
            uploaded_at=record.uploaded_at,
        )
        self._add(upload)
        return upload

    def record_report(self, record: ReportRecord) -> GeneratedReport:
        report = GeneratedReport(
            panel_id=record.panel,
            start_date=record.start_date,
            end_date=record.end_date,
            mode=record.mode,
            merchant_percents=dict(record.merchant_percents),
            summary=[dict(row) for row in record.summary],
            download_url=record.download_url,
            created_at=record.created_at,
        )
        self._add(report)
        return report

    def _add(self, instance: UploadedFile | GeneratedReport) -> None:
        self._session.add(instance)
        try:
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise

    def list_reports(self, panel: str | None = None, *, limit: int = 50) -> list[GeneratedReport]:
        statement = select(GeneratedReport).order_by(GeneratedReport.created_at.desc()).limit(limit)
        if panel is not None:
            statement = statement.where(GeneratedReport.panel_id == panel)
        return list(self._session.scalars(statement))

    def latest_upload(self, panel: str) -> UploadedFile | None:
        statement = (
            select(UploadedFile)
            .where(UploadedFile.panel_id == panel)
            .order_by(UploadedFile.uploaded_at.desc())
            .limit(1)
        )
        return self._session.scalar(statement)


def rehydrate_store(session: Session, store: DatasetStore) -> dict[str, int]:
    """Reload each panel's most recent upload into ``store``.

    Returns the number of rows restored per panel; panels without history are
    left untouched.
    """

    repository = HistoryRepository(session)
    restored: dict[str, int] = {}
    for panel in store.panels:
        upload = repository.latest_upload(panel)
        if upload is None:
            continue
        restored[panel] = store.put(panel, (annotate_date_only(row) for row in upload.data or []))
    if restored:
        logger.info("rehydrated dataset store from upload history", extra={"panels": restored})
    return restored


__all__ = ["HistoryRepository", "ReportRecord", "UploadRecord", "rehydrate_store"]
