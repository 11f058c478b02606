"""Routes for spreadsheet uploads and panel status."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.orm import Session

from withdrawal_reports.api.deps import get_dataset_store, get_db_session, get_panel
from withdrawal_reports.schemas import PanelRead, UploadResponse
from withdrawal_reports.services.datasets import DatasetStore, UnknownPanelError
from withdrawal_reports.services.history import HistoryRepository
from withdrawal_reports.services.ingest import DatasetIngestService, UploadError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload_dataset(
    file: UploadFile | None = File(default=None),
    panel: str = Depends(get_panel),
    store: DatasetStore = Depends(get_dataset_store),
    session: Session = Depends(get_db_session),
) -> UploadResponse:
    """Replace the panel's dataset with the rows of the uploaded spreadsheet."""

    file_bytes = await file.read() if file is not None else None
    filename = file.filename if file is not None else None

    service = DatasetIngestService(store, history=HistoryRepository(session))
    try:
        result = service.ingest(panel=panel, filename=filename, file_bytes=file_bytes)
    except (UploadError, UnknownPanelError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("upload failed", extra={"panel": panel})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc) or "Upload failed",
        ) from exc

    return UploadResponse(panel=result.panel, merchants=result.merchants, count=result.row_count)


@router.get("/panels", response_model=list[PanelRead])
def list_panels(store: DatasetStore = Depends(get_dataset_store)) -> list[PanelRead]:
    return [
        PanelRead(panel=panel, rows=len(store.get(panel)), merchants=store.merchants(panel))
        for panel in store.panels
    ]


__all__ = ["list_panels", "router", "upload_dataset"]
