"""Seed script that records a demo withdrawal workbook as a panel's latest upload."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy.orm import Session

from withdrawal_reports.core.config import get_settings
from withdrawal_reports.db.session import SessionLocal, init_db
from withdrawal_reports.services.datasets import DatasetStore
from withdrawal_reports.services.history import HistoryRepository
from withdrawal_reports.services.ingest import DatasetIngestService
from withdrawal_reports.services.spreadsheets import write_workbook

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_ROWS = [
    {"Merchant Name": "Acme", "Date": "05-01-2024", "Withdrawal Amount": 100, "Withdrawal Fees": 5},
    {"Merchant Name": "Acme", "Date": "20-01-2024", "Withdrawal Amount": 200, "Withdrawal Fees": 10},
    {"Merchant Name": "Globex", "Date": 45300, "Withdrawal Amount": 75.5, "Withdrawal Fees": 1.25},
    {
        "Merchant Name": "Initech",
        "Transaction Date": "2024-01-15T09:30:00",
        "Withdrawal Amount": "1,250.00",
        "Withdrawal Fees": 12,
    },
]


def seed(session: Session, panel: str) -> None:
    """Ingest the demo workbook into ``panel`` so startup rehydration restores it."""

    settings = get_settings()
    payload = write_workbook([("Withdrawals", DEMO_ROWS)])
    source = Path(settings.upload_dir) / "demo-withdrawals.xlsx"
    source.parent.mkdir(parents=True, exist_ok=True)
    source.write_bytes(payload)
    logger.info("Wrote demo workbook to %s", source)

    service = DatasetIngestService(DatasetStore(settings.panels), history=HistoryRepository(session))
    result = service.ingest(panel=panel, filename=source.name, file_bytes=payload)
    logger.info("Recorded %s rows for panel %s (merchants: %s)", result.row_count, panel, ", ".join(result.merchants))


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--panel", default=get_settings().default_panel)
    args = parser.parse_args()

    init_db()
    with SessionLocal() as session:
        seed(session, args.panel)


if __name__ == "__main__":
    main()
