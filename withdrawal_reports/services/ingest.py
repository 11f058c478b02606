"""Services powering the withdrawal spreadsheet upload flow."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from withdrawal_reports.core.config import Settings, get_settings
from withdrawal_reports.obs import UPLOAD_COUNTER, pipeline_span, report_dataset_size
from withdrawal_reports.services.dates import DATE_COLUMNS, annotate_date_only
from withdrawal_reports.services.datasets import MERCHANT_FIELD, DatasetStore
from withdrawal_reports.services.history import HistoryRepository, UploadRecord
from withdrawal_reports.services.report_engine import FEES_FIELD, WITHDRAWAL_FIELD
from withdrawal_reports.services.spreadsheets import read_sheet

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (MERCHANT_FIELD, WITHDRAWAL_FIELD, FEES_FIELD)


class UploadError(RuntimeError):
    """Base class for upload validation errors."""


class NoFileUploadedError(UploadError):
    """Raised when the request carries no file."""


class UnsupportedFileTypeError(UploadError):
    """Raised when the file extension is not an accepted spreadsheet type."""


class EmptySheetError(UploadError):
    """Raised when the first worksheet holds no data rows."""


class MissingColumnsError(UploadError):
    """Raised when required columns are absent; ``missing`` lists them."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required columns: {', '.join(missing)}")
        self.missing = missing


@dataclass(slots=True, frozen=True)
class IngestResult:
    panel: str
    merchants: list[str]
    row_count: int
    storage_path: str


def missing_columns(columns: list[str]) -> list[str]:
    """Required columns absent from ``columns``; the date requirement is any one of several."""
    present = set(columns)
    missing = [column for column in REQUIRED_COLUMNS if column not in present]
    if not present.intersection(DATE_COLUMNS):
        missing.append(f"one of {' / '.join(DATE_COLUMNS)}")
    return missing


class DatasetIngestService:
    """Validates an uploaded spreadsheet and makes it the panel's live dataset."""

    def __init__(
        self,
        store: DatasetStore,
        *,
        history: HistoryRepository | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._history = history
        self._settings = settings or get_settings()

    def ingest(self, *, panel: str, filename: str | None, file_bytes: bytes | None) -> IngestResult:
        panel = self._store.ensure_panel(panel)
        if file_bytes is None or not filename:
            raise NoFileUploadedError("No file uploaded")

        extension = Path(filename).suffix.lower()
        allowed = [ext.lower() for ext in self._settings.allowed_upload_extensions]
        if extension not in allowed:
            raise UnsupportedFileTypeError(f"Only {', '.join(allowed)} files are accepted")
        if not file_bytes:
            raise EmptySheetError("Uploaded file is empty")

        with pipeline_span("dataset.ingest", panel=panel, filename=filename):
            storage_path = self._store_source(panel, extension, file_bytes)

            sheet = read_sheet(file_bytes, filename=filename, text_columns=(MERCHANT_FIELD,))
            if not sheet.rows:
                raise EmptySheetError("Spreadsheet contains no rows")
            missing = missing_columns(sheet.columns)
            if missing:
                raise MissingColumnsError(missing)

            rows = [annotate_date_only(row) for row in sheet.rows]
            row_count = self._store.put(panel, rows)
            merchants = self._store.merchants(panel)
            report_dataset_size(panel, row_count)
            UPLOAD_COUNTER.labels(panel=panel).inc()

            logger.info(
                "ingested withdrawal dataset",
                extra={"panel": panel, "rows": row_count, "merchants": len(merchants)},
            )

            if self._history is not None:
                self._history.record_upload(
                    UploadRecord(
                        panel=panel,
                        original_filename=filename,
                        storage_path=str(storage_path),
                        merchants=merchants,
                        rows=rows,
                    )
                )

        return IngestResult(
            panel=panel,
            merchants=merchants,
            row_count=row_count,
            storage_path=str(storage_path),
        )

    def _store_source(self, panel: str, extension: str, file_bytes: bytes) -> Path:
        upload_dir = Path(self._settings.upload_dir)
        upload_dir.mkdir(parents=True, exist_ok=True)
        path = upload_dir / f"panel-{panel}-input{extension}"
        path.write_bytes(file_bytes)
        return path


__all__ = [
    "DatasetIngestService",
    "EmptySheetError",
    "IngestResult",
    "MissingColumnsError",
    "NoFileUploadedError",
    "REQUIRED_COLUMNS",
    "UnsupportedFileTypeError",
    "UploadError",
    "missing_columns",
]
