"""Merchant withdrawal report engine.

Filters a panel dataset to an inclusive calendar-day range, applies each
requested merchant's percentage to its withdrawals and builds the detail and
summary tables that end up in the report workbook.

Output rows are ordered mappings of column name to value. The percent-amount
column is keyed by the merchant's own percentage (``"2.5% Amount"``), so rows
in one table can carry different column sets and consumers must treat a
missing key as an empty cell.
"""
from __future__ import annotations

import enum
import logging
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

from withdrawal_reports.services.dates import DATE_ONLY_FIELD, extract_date_only
from withdrawal_reports.services.datasets import merchant_name

logger = logging.getLogger(__name__)

WITHDRAWAL_FIELD = "Withdrawal Amount"
FEES_FIELD = "Withdrawal Fees"

MERCHANT_COLUMN = "Merchant"
DATE_COLUMN = "Date"
TOTAL_WITHDRAWAL_COLUMN = "Total Withdrawal Amount"
TOTAL_FEES_COLUMN = "Total Withdrawal Fees"
GRAND_TOTAL_PERCENT_COLUMN = "TOTAL % Amount"
DETAIL_GRAND_TOTAL_LABEL = "GRAND TOTAL"
SUMMARY_GRAND_TOTAL_LABEL = "TOTAL"

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")
_ZERO = Decimal("0")
# Amounts and percentages beyond this decimal exponent are not numbers we accept.
_MAX_EXPONENT = 100


class ReportError(RuntimeError):
    """Base class for report generation errors."""


class MissingFiltersError(ReportError):
    """Raised when merchants or the date range are absent from the request."""


class InvalidDateRangeError(ReportError):
    """Raised when a bound cannot be parsed or the start is after the end."""


class NoDataAvailableError(ReportError):
    """Raised when the panel has no uploaded dataset."""


class NoDataInRangeError(ReportError):
    """Raised when no rows fall inside the requested date range."""


class NoMatchingMerchantDataError(ReportError):
    """Raised when none of the requested merchants has rows in range."""


class ReportMode(str, enum.Enum):
    DETAILED = "detailed"
    SUMMARY = "summary"


@dataclass(slots=True, frozen=True)
class MerchantTotals:
    """Aggregated figures for one merchant included in a report."""

    merchant: str
    percent: Decimal
    transactions: int
    total_withdrawal: Decimal
    total_fees: Decimal
    total_percent_amount: Decimal

    @property
    def percent_column(self) -> str:
        return percent_column(self.percent)


@dataclass(slots=True, frozen=True)
class GrandTotals:
    total_withdrawal: Decimal
    total_fees: Decimal
    total_percent_amount: Decimal
    merchants: int
    transactions: int


@dataclass(slots=True, frozen=True)
class ReportResult:
    """Everything produced by a successful report run."""

    start_date: str
    end_date: str
    mode: ReportMode
    detail_rows: list[dict[str, Any]]
    summary_rows: list[dict[str, Any]]
    merchant_totals: list[MerchantTotals]
    grand_totals: GrandTotals


def _in_range(value: Decimal) -> bool:
    return value.is_finite() and (value.is_zero() or abs(value.adjusted()) <= _MAX_EXPONENT)


def parse_percent(value: Any) -> Decimal | None:
    """Return ``value`` as a finite percentage or ``None`` when it is not one."""

    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    if text.endswith("%"):
        text = text[:-1].rstrip()
    try:
        percent = Decimal(text)
    except InvalidOperation:
        return None
    return percent if _in_range(percent) else None


def to_amount(value: Any) -> Decimal:
    """Coerce a spreadsheet cell to a monetary amount, defaulting to zero."""

    if value is None or isinstance(value, bool):
        return _ZERO
    if isinstance(value, Decimal):
        return value if _in_range(value) else _ZERO
    if isinstance(value, numbers.Real):
        amount = Decimal(str(value))
        return amount if _in_range(amount) else _ZERO
    if not isinstance(value, str):
        return _ZERO
    text = value.strip().replace(",", "").replace("$", "")
    if text.startswith("(") and text.endswith(")"):
        text = "-" + text[1:-1]
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return _ZERO
    return amount if _in_range(amount) else _ZERO


def format_amount(amount: Decimal) -> str:
    """Render ``amount`` with exactly two decimal places."""
    with localcontext() as context:
        context.prec = max(context.prec, amount.adjusted() + 3)
        return str(amount.quantize(_CENT, rounding=ROUND_HALF_UP))


def percent_column(percent: Decimal) -> str:
    """Column key for a percentage, e.g. ``"10% Amount"`` or ``"2.5% Amount"``."""
    text = format(percent.normalize(), "f")
    if text == "-0":
        text = "0"
    return f"{text}% Amount"


def normalize_date_range(start_date: Any, end_date: Any) -> tuple[str, str]:
    start = extract_date_only(start_date)
    if not start:
        raise InvalidDateRangeError(f"Invalid start date '{start_date}'")
    end = extract_date_only(end_date)
    if not end:
        raise InvalidDateRangeError(f"Invalid end date '{end_date}'")
    if start > end:
        raise InvalidDateRangeError(f"Start date {start} is after end date {end}")
    return start, end


def filter_by_date(rows: Sequence[Mapping[str, Any]], start: str, end: str) -> list[Mapping[str, Any]]:
    """Rows whose ``DateOnly`` lies in ``[start, end]``; bounds are inclusive."""
    return [row for row in rows if start <= (row.get(DATE_ONLY_FIELD) or "") <= end]


def _detail_row(
    merchant: str,
    row: Mapping[str, Any],
    column: str,
    withdrawal: Decimal,
    fee: Decimal,
    amount: Decimal,
) -> dict[str, Any]:
    return {
        MERCHANT_COLUMN: merchant,
        DATE_COLUMN: row.get(DATE_ONLY_FIELD),
        WITHDRAWAL_FIELD: float(withdrawal),
        FEES_FIELD: float(fee),
        column: format_amount(amount),
    }


def generate_report(
    rows: Sequence[Mapping[str, Any]],
    start_date: Any,
    end_date: Any,
    merchant_percents: Mapping[str, Any],
    *,
    mode: ReportMode = ReportMode.DETAILED,
) -> ReportResult:
    """Build the detail and summary tables for a merchant percentage report.

    Merchants are processed in the iteration order of ``merchant_percents``.
    Entries whose percentage is not a finite number, and merchants without
    rows in range, are left out of the output. Totals are accumulated at full
    precision and only formatted to two decimals when rows are built.
    """

    if not rows:
        raise NoDataAvailableError("No data available. Upload a spreadsheet first.")
    if not merchant_percents or not start_date or not end_date:
        raise MissingFiltersError("Merchant percentages, start date and end date are required")

    start, end = normalize_date_range(start_date, end_date)
    in_range = filter_by_date(rows, start, end)
    if not in_range:
        raise NoDataInRangeError(f"No transactions between {start} and {end}")

    include_details = ReportMode(mode) is ReportMode.DETAILED
    detail_rows: list[dict[str, Any]] = []
    summary_rows: list[dict[str, Any]] = []
    merchant_totals: list[MerchantTotals] = []

    for merchant, raw_percent in merchant_percents.items():
        percent = parse_percent(raw_percent)
        if percent is None:
            logger.debug("skipping merchant with non-numeric percent", extra={"merchant": merchant})
            continue

        matches = [row for row in in_range if merchant_name(row) == merchant]
        if not matches:
            continue

        column = percent_column(percent)
        total_withdrawal = total_fees = total_percent = _ZERO
        for row in matches:
            withdrawal = to_amount(row.get(WITHDRAWAL_FIELD))
            fee = to_amount(row.get(FEES_FIELD))
            amount = withdrawal * percent / _HUNDRED

            total_withdrawal += withdrawal
            total_fees += fee
            total_percent += amount

            if include_details:
                detail_rows.append(_detail_row(merchant, row, column, withdrawal, fee, amount))

        totals = MerchantTotals(
            merchant=merchant,
            percent=percent,
            transactions=len(matches),
            total_withdrawal=total_withdrawal,
            total_fees=total_fees,
            total_percent_amount=total_percent,
        )
        merchant_totals.append(totals)

        if include_details:
            detail_rows.append(
                {
                    MERCHANT_COLUMN: f"Total of {merchant}",
                    WITHDRAWAL_FIELD: format_amount(total_withdrawal),
                    FEES_FIELD: format_amount(total_fees),
                    column: format_amount(total_percent),
                }
            )
        summary_rows.append(
            {
                MERCHANT_COLUMN: merchant,
                TOTAL_WITHDRAWAL_COLUMN: format_amount(total_withdrawal),
                TOTAL_FEES_COLUMN: format_amount(total_fees),
                column: format_amount(total_percent),
            }
        )

    if not merchant_totals:
        raise NoMatchingMerchantDataError("No matching data for the selected merchants in this date range")

    grand = GrandTotals(
        total_withdrawal=sum((t.total_withdrawal for t in merchant_totals), _ZERO),
        total_fees=sum((t.total_fees for t in merchant_totals), _ZERO),
        total_percent_amount=sum((t.total_percent_amount for t in merchant_totals), _ZERO),
        merchants=len(merchant_totals),
        transactions=sum(t.transactions for t in merchant_totals),
    )

    if include_details:
        detail_rows.append(
            {
                MERCHANT_COLUMN: DETAIL_GRAND_TOTAL_LABEL,
                WITHDRAWAL_FIELD: format_amount(grand.total_withdrawal),
                FEES_FIELD: format_amount(grand.total_fees),
                GRAND_TOTAL_PERCENT_COLUMN: format_amount(grand.total_percent_amount),
            }
        )
    summary_rows.append(
        {
            MERCHANT_COLUMN: SUMMARY_GRAND_TOTAL_LABEL,
            TOTAL_WITHDRAWAL_COLUMN: format_amount(grand.total_withdrawal),
            TOTAL_FEES_COLUMN: format_amount(grand.total_fees),
            GRAND_TOTAL_PERCENT_COLUMN: format_amount(grand.total_percent_amount),
        }
    )

    return ReportResult(
        start_date=start,
        end_date=end,
        mode=ReportMode(mode),
        detail_rows=detail_rows,
        summary_rows=summary_rows,
        merchant_totals=merchant_totals,
        grand_totals=grand,
    )


__all__ = [
    "GrandTotals",
    "InvalidDateRangeError",
    "MerchantTotals",
    "MissingFiltersError",
    "NoDataAvailableError",
    "NoDataInRangeError",
    "NoMatchingMerchantDataError",
    "ReportError",
    "ReportMode",
    "ReportResult",
    "filter_by_date",
    "format_amount",
    "generate_report",
    "normalize_date_range",
    "parse_percent",
    "percent_column",
    "to_amount",
]
