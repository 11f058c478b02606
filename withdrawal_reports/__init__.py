"""Withdrawal spreadsheet upload and merchant report service."""

__version__ = "0.1.0"
