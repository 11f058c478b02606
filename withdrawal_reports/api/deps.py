"""Common dependencies for API routes."""
from __future__ import annotations

from collections.abc import Iterator

from fastapi import Query, Request
from sqlalchemy.orm import Session

from withdrawal_reports.core.config import get_settings
from withdrawal_reports.db.session import SessionLocal
from withdrawal_reports.services.artifacts import ReportArtifactWriter
from withdrawal_reports.services.datasets import DatasetStore


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_dataset_store(request: Request) -> DatasetStore:
    """Return the dataset store owned by the running application."""
    return request.app.state.dataset_store


def get_artifact_writer() -> ReportArtifactWriter:
    settings = get_settings()
    return ReportArtifactWriter(settings.output_dir, url_prefix=settings.output_url_prefix)


def get_panel(panel: str | None = Query(default=None, alias="id", description="Panel identifier")) -> str:
    """Resolve the ``?id=`` panel selector, falling back to the default panel."""
    return panel or get_settings().default_panel


__all__ = ["get_artifact_writer", "get_dataset_store", "get_db_session", "get_panel"]
