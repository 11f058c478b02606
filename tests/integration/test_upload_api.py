from __future__ import annotations

from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from withdrawal_reports.models import UploadedFile

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _upload(client: TestClient, payload: bytes, *, panel: str = "1", filename: str = "withdrawals.xlsx"):
    return client.post(
        "/api/upload",
        params={"id": panel},
        files={"file": (filename, payload, XLSX_TYPE)},
    )


def test_upload_returns_merchants_and_records_history(
    client: TestClient, db_session: Session, make_workbook, acme_rows
) -> None:
    response = _upload(client, make_workbook(acme_rows), panel="2")

    assert response.status_code == 200
    assert response.json() == {"success": True, "panel": "2", "merchants": ["Acme", "Globex"], "count": 4}

    upload = db_session.scalars(select(UploadedFile)).one()
    assert upload.panel_id == "2"
    assert upload.row_count == 4
    assert upload.original_name == "withdrawals.xlsx"


def test_reupload_is_idempotent(client: TestClient, make_workbook, acme_rows) -> None:
    payload = make_workbook(acme_rows)
    first = _upload(client, payload).json()
    second = _upload(client, payload).json()

    assert first["merchants"] == second["merchants"]
    assert first["count"] == second["count"]


def test_upload_defaults_to_first_panel(client: TestClient, make_workbook, acme_rows) -> None:
    response = client.post("/api/upload", files={"file": ("w.xlsx", make_workbook(acme_rows), XLSX_TYPE)})

    assert response.json()["panel"] == "1"
    panels = {item["panel"]: item for item in client.get("/api/panels").json()}
    assert panels["1"]["rows"] == 4
    assert panels["2"] == {"panel": "2", "rows": 0, "merchants": []}


def test_upload_missing_columns(client: TestClient, make_workbook) -> None:
    response = _upload(client, make_workbook([{"Merchant Name": "Acme", "Date": "2024-01-01"}]))

    assert response.status_code == 400
    assert response.json() == {"error": "Missing required columns: Withdrawal Amount, Withdrawal Fees"}


def test_upload_without_file(client: TestClient) -> None:
    response = client.post("/api/upload", params={"id": "1"})

    assert response.status_code == 400
    assert response.json() == {"error": "No file uploaded"}


def test_upload_rejects_unsupported_type(client: TestClient) -> None:
    response = _upload(client, b"plain text", filename="notes.txt")

    assert response.status_code == 400
    assert "error" in response.json()


def test_upload_csv(client: TestClient) -> None:
    payload = b"Merchant Name,Transaction Date,Withdrawal Amount,Withdrawal Fees\nAcme,05-01-2024,10,1\n"
    response = client.post("/api/upload", files={"file": ("w.csv", payload, "text/csv")})

    assert response.status_code == 200
    assert response.json()["merchants"] == ["Acme"]


def test_upload_unknown_panel(client: TestClient, make_workbook, acme_rows) -> None:
    response = _upload(client, make_workbook(acme_rows), panel="7")

    assert response.status_code == 400
    assert "Unknown panel" in response.json()["error"]


def test_corrupt_workbook_is_server_error(client: TestClient) -> None:
    response = _upload(client, b"this is not a zip archive")

    assert response.status_code == 500
    assert response.json()["error"]
