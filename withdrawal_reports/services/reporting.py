"""Report generation flow: engine, workbook artifact and history record."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from withdrawal_reports.core.config import Settings, get_settings
from withdrawal_reports.obs import REPORTS_GENERATED_COUNTER, pipeline_span, record_report_failure
from withdrawal_reports.services.artifacts import ReportArtifact, ReportArtifactWriter
from withdrawal_reports.services.datasets import DatasetStore
from withdrawal_reports.services.history import HistoryRepository, ReportRecord
from withdrawal_reports.services.report_engine import ReportError, ReportMode, ReportResult, generate_report

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GeneratedReportResult:
    """Response returned to the generate API."""

    report_id: str | None
    result: ReportResult
    artifact: ReportArtifact


class ReportGenerationService:
    """Runs the report engine for a panel and publishes its workbook."""

    def __init__(
        self,
        store: DatasetStore,
        writer: ReportArtifactWriter,
        *,
        history: HistoryRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._writer = writer
        self._history = history
        self._settings = settings or get_settings()

    def generate(
        self,
        *,
        panel: str,
        merchant_percents: Mapping[str, Any],
        start_date: Any,
        end_date: Any,
        mode: ReportMode | str | None = None,
    ) -> GeneratedReportResult:
        panel = self._store.ensure_panel(panel)
        report_mode = ReportMode(mode or self._settings.report_mode)

        with pipeline_span("report.generate", panel=panel, mode=report_mode.value):
            try:
                result = generate_report(
                    self._store.get(panel),
                    start_date,
                    end_date,
                    merchant_percents,
                    mode=report_mode,
                )
            except ReportError as exc:
                record_report_failure(panel, exc)
                logger.info("report request rejected", extra={"panel": panel, "reason": str(exc)})
                raise

            artifact = self._writer.write(
                panel=panel,
                detail_rows=result.detail_rows,
                summary_rows=result.summary_rows,
            )
            REPORTS_GENERATED_COUNTER.labels(panel=panel, mode=report_mode.value).inc()

            report_id: str | None = None
            if self._history is not None:
                record = self._history.record_report(
                    ReportRecord(
                        panel=panel,
                        start_date=result.start_date,
                        end_date=result.end_date,
                        mode=report_mode.value,
                        merchant_percents=merchant_percents,
                        summary=result.summary_rows,
                        download_url=artifact.download_url,
                    )
                )
                report_id = record.id

        logger.info(
            "generated merchant report",
            extra={
                "panel": panel,
                "merchants": result.grand_totals.merchants,
                "transactions": result.grand_totals.transactions,
                "artifact": artifact.filename,
            },
        )
        return GeneratedReportResult(report_id=report_id, result=result, artifact=artifact)


__all__ = ["GeneratedReportResult", "ReportGenerationService"]
