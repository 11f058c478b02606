"""Spreadsheet codec: workbook bytes to row mappings and back."""
from __future__ import annotations

import io
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

HEADER_FILL = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF")

_MAX_SHEET_NAME = 31
_MAX_COLUMN_WIDTH = 60


@dataclass(slots=True)
class ParsedSheet:
    """Header columns and non-blank rows of the first worksheet."""

    columns: list[str] = field(default_factory=list)
    rows: list[dict[str, Any]] = field(default_factory=list)


def _is_blank(value: Any) -> bool:
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _cell_value(value: Any) -> Any:
    """Convert pandas/numpy cell values into plain JSON-friendly Python values."""
    if isinstance(value, (pd.Timestamp, datetime, date, time)):
        return value.isoformat()
    if hasattr(value, "item"):
        return value.item()
    return value


_EXCEL_ENGINES = {".xls": "xlrd"}
_DEFAULT_EXCEL_ENGINE = "openpyxl"


def _read_frame(data: bytes, suffix: str, **options: Any) -> pd.DataFrame:
    # Only truly empty cells count as missing; "NA", "None" and "null" stay text.
    options.update(keep_default_na=False, na_values=[""])
    buffer = io.BytesIO(data)
    if suffix == ".csv":
        return pd.read_csv(buffer, **options)
    engine = _EXCEL_ENGINES.get(suffix, _DEFAULT_EXCEL_ENGINE)
    return pd.read_excel(buffer, sheet_name=0, engine=engine, **options)


def read_sheet(
    data: bytes,
    *,
    filename: str | None = None,
    text_columns: Sequence[str] = (),
) -> ParsedSheet:
    """Parse the first worksheet (or a CSV file) into row mappings.

    Blank cells are omitted from each row and fully blank rows are dropped.
    Columns named in ``text_columns`` are read verbatim as strings, so codes
    such as ``007`` keep their leading zeros.
    """

    suffix = Path(filename).suffix.lower() if filename else ""
    try:
        dtype: dict[str, type] = {}
        if text_columns:
            header = _read_frame(data, suffix, nrows=0)
            wanted = set(text_columns)
            dtype = {column: str for column in header.columns if str(column).strip() in wanted}
        frame = _read_frame(data, suffix, dtype=dtype or None)
    except pd.errors.EmptyDataError:
        return ParsedSheet()

    frame.columns = [str(column).strip() for column in frame.columns]
    frame = frame.dropna(how="all")

    rows: list[dict[str, Any]] = []
    for record in frame.to_dict(orient="records"):
        row = {column: _cell_value(value) for column, value in record.items() if not _is_blank(value)}
        if row:
            rows.append(row)
    return ParsedSheet(columns=list(frame.columns), rows=rows)


def _style_sheet(sheet: Worksheet) -> None:
    for cell in sheet[1]:
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
    for index, column_cells in enumerate(sheet.columns, start=1):
        width = max((len(str(cell.value)) for cell in column_cells if cell.value is not None), default=8)
        sheet.column_dimensions[get_column_letter(index)].width = min(width + 2, _MAX_COLUMN_WIDTH)


def write_workbook(sheets: Sequence[tuple[str, Sequence[Mapping[str, Any]]]]) -> bytes:
    """Serialise ``(sheet name, rows)`` pairs into an ``.xlsx`` workbook.

    Columns are the union of the rows' keys in first-seen order; keys missing
    from a row become empty cells.
    """

    if not sheets:
        raise ValueError("At least one sheet is required")

    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, rows in sheets:
            sheet_name = name[:_MAX_SHEET_NAME]
            frame = pd.DataFrame.from_records([dict(row) for row in rows])
            frame.to_excel(writer, sheet_name=sheet_name, index=False)
            _style_sheet(writer.sheets[sheet_name])
    return buffer.getvalue()


__all__ = ["ParsedSheet", "read_sheet", "write_workbook"]
