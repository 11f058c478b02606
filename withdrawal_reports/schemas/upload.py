"""Pydantic schemas for dataset uploads and panel status."""
from __future__ import annotations

from pydantic import BaseModel


class UploadResponse(BaseModel):
    success: bool = True
    panel: str
    merchants: list[str]
    count: int


class PanelRead(BaseModel):
    panel: str
    rows: int
    merchants: list[str]


__all__ = ["PanelRead", "UploadResponse"]
