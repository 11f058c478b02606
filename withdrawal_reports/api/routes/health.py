"""Health and readiness endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from withdrawal_reports.api.deps import get_dataset_store
from withdrawal_reports.core.config import get_settings
from withdrawal_reports.services.datasets import DatasetStore

router = APIRouter()


@router.get("/healthz", summary="Liveness check")
def health_check() -> dict[str, str]:
    settings = get_settings()
    return {"status": "ok", "service": settings.app_name}


@router.get("/readyz", summary="Readiness check")
def readiness_check(store: DatasetStore = Depends(get_dataset_store)) -> dict[str, object]:
    settings = get_settings()
    return {"status": "ready", "service": settings.app_name, "panels": list(store.panels)}
