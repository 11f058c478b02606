"""Calendar-day normalisation for spreadsheet date cells.

Uploaded workbooks carry transaction dates in whatever shape the exporting
system produced: spreadsheet serial numbers, ``DD-MM-YYYY`` strings,
ISO timestamps or native datetimes once pandas has read the file. Every row
is reduced to a zero-padded ``YYYY-MM-DD`` string so that range filters can
compare plain strings.
"""
from __future__ import annotations

import math
import numbers
import re
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from typing import Any

import pandas as pd

DATE_ONLY_FIELD = "DateOnly"
DATE_COLUMNS = ("Date", "Transaction Date", "Created At")

# Serial 1 is 1899-12-31, matching the 1900 date system used by spreadsheets.
SPREADSHEET_EPOCH = datetime(1899, 12, 30)

_DAY_FIRST_PATTERN = re.compile(r"^(?P<day>\d{2})-(?P<month>\d{2})-(?P<year>\d{4})(?:\s|$)")


def _from_serial(value: numbers.Real) -> str:
    serial = float(value)
    if not math.isfinite(serial) or serial == 0:
        return ""
    try:
        return (SPREADSHEET_EPOCH + timedelta(days=serial)).date().isoformat()
    except OverflowError:
        return ""


def _from_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def _from_day_first(match: re.Match[str]) -> str:
    try:
        parsed = date(int(match["year"]), int(match["month"]), int(match["day"]))
    except ValueError:
        return ""
    return parsed.isoformat()


def _parse_general(value: Any) -> str:
    try:
        parsed = pd.to_datetime(value, errors="coerce")
    except Exception:  # pandas raises assorted parser errors for odd inputs
        return ""
    if not isinstance(parsed, pd.Timestamp) or pd.isna(parsed):
        return ""
    if parsed.tzinfo is not None:
        parsed = parsed.tz_convert("UTC")
    return parsed.date().isoformat()


def extract_date_only(value: Any) -> str:
    """Return the calendar day of ``value`` as ``YYYY-MM-DD`` or ``''``.

    Numbers are read as spreadsheet serial dates, ``DD-MM-YYYY`` strings
    (optionally followed by a time) as day-first dates, and anything else is
    handed to :func:`pandas.to_datetime`. The function never raises.
    """

    if value is None or value is pd.NaT or isinstance(value, bool):
        return ""
    if isinstance(value, numbers.Real):
        return _from_serial(value)
    if isinstance(value, datetime):
        return _from_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return ""
        match = _DAY_FIRST_PATTERN.match(text)
        if match:
            return _from_day_first(match)
        return _parse_general(text)
    return _parse_general(value)


def row_date_value(row: Mapping[str, Any]) -> Any:
    """Return the first populated date-like column of ``row``."""
    for column in DATE_COLUMNS:
        value = row.get(column)
        if isinstance(value, float) and math.isnan(value):
            continue
        if value:
            return value
    return None


def annotate_date_only(row: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``row`` carrying its derived ``DateOnly`` field."""
    annotated = dict(row)
    annotated[DATE_ONLY_FIELD] = extract_date_only(row_date_value(row))
    return annotated


__all__ = [
    "DATE_COLUMNS",
    "DATE_ONLY_FIELD",
    "SPREADSHEET_EPOCH",
    "annotate_date_only",
    "extract_date_only",
    "row_date_value",
]
