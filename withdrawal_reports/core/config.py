"""Configuration management for the withdrawal reports service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = Field(default="Withdrawal Reports")
    version: str = Field(default="0.1.0")
    docs_url: str | None = Field(default="/docs")
    redoc_url: str | None = Field(default="/redoc")
    openapi_url: str = Field(default="/openapi.json")

    database_url: str = Field(default="sqlite+pysqlite:///./withdrawal_reports.db")

    upload_dir: Path = Field(default=Path("uploads"))
    output_dir: Path = Field(default=Path("output"))
    output_url_prefix: str = Field(default="/output")
    allowed_upload_extensions: list[str] = Field(default_factory=lambda: [".xlsx", ".xls", ".csv"])

    panels: list[str] = Field(default_factory=lambda: ["1", "2"])
    default_panel: str = Field(default="1")
    report_mode: Literal["detailed", "summary"] = Field(default="detailed")
    rehydrate_on_startup: bool = Field(default=True)

    client_origin: str = Field(default="*")

    log_level: str | None = Field(default=None)
    logging_config: Path | None = Field(default=None)

    enable_metrics: bool = Field(default=True)
    enable_tracing: bool = Field(default=False)
    otel_exporter_endpoint: str | None = Field(default=None)

    aws_region: str = Field(default="us-east-1")
    s3_endpoint_url: str | None = Field(default=None)
    audit_log_bucket: str | None = Field(default=None)
    audit_log_prefix: str = Field(default="audit/requests")
    audit_log_sample_rate: float = Field(default=1.0)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
