from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from withdrawal_reports.models import UploadedFile
from withdrawal_reports.models.base import utcnow
from withdrawal_reports.services.datasets import DatasetStore
from withdrawal_reports.services.history import HistoryRepository, ReportRecord, UploadRecord, rehydrate_store


def _upload(panel: str, merchant: str, **kwargs) -> UploadRecord:
    return UploadRecord(
        panel=panel,
        original_filename=f"{merchant}.xlsx",
        storage_path=f"uploads/panel-{panel}-input.xlsx",
        merchants=[merchant],
        rows=[{"Merchant Name": merchant, "Date": "05-01-2024", "Withdrawal Amount": 10}],
        **kwargs,
    )


def test_rehydrate_restores_latest_upload_per_panel(db_session: Session) -> None:
    repository = HistoryRepository(db_session)
    earlier = utcnow() - timedelta(hours=1)
    repository.record_upload(_upload("1", "Old", uploaded_at=earlier))
    repository.record_upload(_upload("1", "Acme"))

    store = DatasetStore(["1", "2"])
    restored = rehydrate_store(db_session, store)

    assert restored == {"1": 1}
    assert store.merchants("1") == ["Acme"]
    assert store.get("1")[0]["DateOnly"] == "2024-01-05"
    assert store.get("2") == []


def test_list_reports_newest_first_and_filtered(db_session: Session) -> None:
    repository = HistoryRepository(db_session)
    base = utcnow()
    for offset, panel in enumerate(["1", "2", "1"]):
        repository.record_report(
            ReportRecord(
                panel=panel,
                start_date="2024-01-01",
                end_date="2024-01-31",
                mode="detailed",
                merchant_percents={"Acme": "2.5"},
                summary=[{"Merchant": "TOTAL"}],
                download_url=f"/output/report-{offset}.xlsx",
                created_at=base + timedelta(minutes=offset),
            )
        )

    panel_one = repository.list_reports("1")
    assert [report.download_url for report in panel_one] == ["/output/report-2.xlsx", "/output/report-0.xlsx"]
    assert len(repository.list_reports(limit=2)) == 2
    assert repository.latest_upload("1") is None


def test_failed_commit_rolls_back_pending_record(db_session: Session, monkeypatch) -> None:
    repository = HistoryRepository(db_session)

    def failing_commit() -> None:
        raise OperationalError("COMMIT", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", failing_commit)
    with pytest.raises(OperationalError):
        repository.record_upload(_upload("1", "Acme"))
    monkeypatch.undo()

    assert db_session.scalars(select(UploadedFile)).all() == []
    assert repository.latest_upload("1") is None
