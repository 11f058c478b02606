"""Report generation and history endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from withdrawal_reports.api.deps import get_artifact_writer, get_dataset_store, get_db_session, get_panel
from withdrawal_reports.schemas import GenerateReportRequest, GenerateReportResponse, ReportRead
from withdrawal_reports.services.artifacts import ReportArtifactWriter
from withdrawal_reports.services.datasets import DatasetStore, UnknownPanelError
from withdrawal_reports.services.history import HistoryRepository
from withdrawal_reports.services.report_engine import ReportError
from withdrawal_reports.services.reporting import ReportGenerationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate", response_model=GenerateReportResponse)
def generate_report(
    payload: GenerateReportRequest,
    panel: str = Depends(get_panel),
    store: DatasetStore = Depends(get_dataset_store),
    writer: ReportArtifactWriter = Depends(get_artifact_writer),
    session: Session = Depends(get_db_session),
) -> GenerateReportResponse:
    """Apply merchant percentages over a date range and publish the workbook."""

    service = ReportGenerationService(store, writer, history=HistoryRepository(session))
    try:
        generated = service.generate(
            panel=panel,
            merchant_percents=payload.merchant_percents,
            start_date=payload.start_date,
            end_date=payload.end_date,
            mode=payload.mode,
        )
    except (ReportError, UnknownPanelError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("report generation failed", extra={"panel": panel})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) or "Failed to generate summary",
        ) from exc

    return GenerateReportResponse(
        summary=generated.result.summary_rows,
        download_url=generated.artifact.download_url,
        report_id=generated.report_id,
    )


@router.get("/reports", response_model=list[ReportRead])
def list_reports(
    panel: str | None = Query(default=None, alias="id"),
    limit: int = Query(default=50, ge=1, le=500),
    session: Session = Depends(get_db_session),
) -> list[ReportRead]:
    """Return generated report records, newest first."""
    reports = HistoryRepository(session).list_reports(panel, limit=limit)
    return [ReportRead.model_validate(report) for report in reports]


__all__ = ["generate_report", "list_reports", "router"]
