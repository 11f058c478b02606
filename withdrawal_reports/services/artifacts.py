"""Writes generated reports to uniquely named workbook files."""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from withdrawal_reports.services.spreadsheets import write_workbook

logger = logging.getLogger(__name__)

DETAIL_SHEET = "Detailed Data"
SUMMARY_SHEET = "Summary"


@dataclass(slots=True, frozen=True)
class ReportArtifact:
    filename: str
    path: Path
    download_url: str


class ReportArtifactWriter:
    """Serialises report tables into ``report-panel-<panel>-<millis>.xlsx`` files."""

    def __init__(
        self,
        output_dir: Path | str,
        *,
        url_prefix: str = "/output",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._output_dir = Path(output_dir)
        self._url_prefix = url_prefix.rstrip("/")
        self._clock = clock

    def write(
        self,
        *,
        panel: str,
        detail_rows: Sequence[Mapping[str, Any]],
        summary_rows: Sequence[Mapping[str, Any]],
    ) -> ReportArtifact:
        sheets: list[tuple[str, Sequence[Mapping[str, Any]]]] = []
        if detail_rows:
            sheets.append((DETAIL_SHEET, detail_rows))
        sheets.append((SUMMARY_SHEET, summary_rows))
        payload = write_workbook(sheets)

        self._output_dir.mkdir(parents=True, exist_ok=True)
        path = self._create_unique(panel, payload)
        download_url = f"{self._url_prefix}/{path.name}"
        logger.info(
            "wrote report artifact",
            extra={"panel": panel, "artifact": path.name, "bytes": len(payload)},
        )
        return ReportArtifact(filename=path.name, path=path, download_url=download_url)

    def _create_unique(self, panel: str, payload: bytes) -> Path:
        stem = f"report-panel-{panel}-{int(self._clock() * 1000)}"
        attempt = 0
        while True:
            suffix = f"-{attempt}" if attempt else ""
            path = self._output_dir / f"{stem}{suffix}.xlsx"
            try:
                with path.open("xb") as handle:
                    handle.write(payload)
            except FileExistsError:
                attempt += 1
                continue
            return path


__all__ = ["DETAIL_SHEET", "ReportArtifact", "ReportArtifactWriter", "SUMMARY_SHEET"]
