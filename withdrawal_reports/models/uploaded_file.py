"""History of spreadsheets uploaded to a panel."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from withdrawal_reports.models.base import Base, new_id, utcnow


class UploadedFile(Base):
    """One successfully ingested upload, including the annotated rows."""

    __tablename__ = "uploaded_files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    panel_id: Mapped[str] = mapped_column(String(32), index=True, nullable=False)
    original_name: Mapped[str | None] = mapped_column(String(255))
    file_path: Mapped[str] = mapped_column(String(512), nullable=False)
    row_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    merchants: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    data: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


__all__ = ["UploadedFile"]
