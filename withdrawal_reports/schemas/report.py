"""Schemas for report generation and report history."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class GenerateReportRequest(BaseModel):
    """Filters for a merchant percentage report."""

    model_config = ConfigDict(populate_by_name=True)

    merchant_percents: dict[str, Any] = Field(
        default_factory=dict,
        alias="merchantPercents",
        description="Merchant name mapped to the percentage applied to its withdrawals",
    )
    start_date: str | None = Field(default=None, alias="startDate")
    end_date: str | None = Field(default=None, alias="endDate")
    mode: Literal["detailed", "summary"] | None = Field(
        default=None,
        description="Overrides the configured report mode; summary mode omits per-transaction rows",
    )


class GenerateReportResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    summary: list[dict[str, Any]]
    download_url: str = Field(alias="downloadUrl")
    report_id: str | None = Field(default=None, alias="reportId")


class ReportRead(BaseModel):
    """Serialized representation of a generated report record."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    panel_id: str = Field(alias="panel")
    start_date: str = Field(alias="startDate")
    end_date: str = Field(alias="endDate")
    mode: str
    merchant_percents: dict[str, Any] = Field(alias="merchantPercents")
    summary: list[dict[str, Any]]
    download_url: str = Field(alias="downloadUrl")
    created_at: datetime = Field(alias="createdAt")


__all__ = ["GenerateReportRequest", "GenerateReportResponse", "ReportRead"]
