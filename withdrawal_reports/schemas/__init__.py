"""Pydantic schemas package."""

from .report import GenerateReportRequest, GenerateReportResponse, ReportRead
from .upload import PanelRead, UploadResponse

__all__ = [
    "GenerateReportRequest",
    "GenerateReportResponse",
    "PanelRead",
    "ReportRead",
    "UploadResponse",
]
