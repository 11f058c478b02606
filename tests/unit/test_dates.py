from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from withdrawal_reports.services.dates import (
    DATE_ONLY_FIELD,
    annotate_date_only,
    extract_date_only,
    row_date_value,
)


def test_spreadsheet_serial_maps_to_calendar_day() -> None:
    assert extract_date_only(45000) == "2023-03-15"
    assert extract_date_only(45000.75) == "2023-03-15"


def test_day_first_strings_are_reordered() -> None:
    assert extract_date_only("05-06-2024") == "2024-06-05"
    assert extract_date_only("05-06-2024 13:45") == "2024-06-05"


def test_iso_strings_and_native_dates() -> None:
    assert extract_date_only("2024-03-01T10:00:00") == "2024-03-01"
    assert extract_date_only(date(2024, 2, 29)) == "2024-02-29"
    assert extract_date_only(datetime(2024, 2, 29, 23, 59)) == "2024-02-29"


def test_aware_datetimes_use_utc_day() -> None:
    tz = timezone(timedelta(hours=5))
    assert extract_date_only(datetime(2024, 3, 1, 2, 0, tzinfo=tz)) == "2024-02-29"


@pytest.mark.parametrize(
    "value",
    ["", "   ", "not a date", "31-02-2024", None, True, 0, float("nan"), float("inf"), 10**12, object(), [1, 2]],
)
def test_unparseable_values_yield_empty_string(value) -> None:
    assert extract_date_only(value) == ""


def test_row_date_value_prefers_date_column_order() -> None:
    row = {"Created At": "2024-01-03", "Transaction Date": "2024-01-02"}
    assert row_date_value(row) == "2024-01-02"
    assert row_date_value({"Date": float("nan"), "Created At": 45000}) == 45000
    assert row_date_value({"Merchant Name": "Acme"}) is None


def test_annotate_date_only_copies_row() -> None:
    row = {"Merchant Name": "Acme", "Date": "10-01-2024"}
    annotated = annotate_date_only(row)

    assert annotated[DATE_ONLY_FIELD] == "2024-01-10"
    assert DATE_ONLY_FIELD not in row
    assert annotate_date_only({"Merchant Name": "Acme"})[DATE_ONLY_FIELD] == ""
