from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Callable, Iterator, Mapping, Sequence
from io import BytesIO
from pathlib import Path
from types import SimpleNamespace
from typing import Any

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="withdrawal-reports-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{_TEST_ROOT / 'test_suite.db'}"
os.environ["UPLOAD_DIR"] = str(_TEST_ROOT / "uploads")
os.environ["OUTPUT_DIR"] = str(_TEST_ROOT / "output")
os.environ["ENABLE_TRACING"] = "false"
os.environ["REHYDRATE_ON_STARTUP"] = "false"

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from withdrawal_reports.api.deps import get_db_session
from withdrawal_reports.main import app
from withdrawal_reports.models import Base
from withdrawal_reports.services.spreadsheets import write_workbook


class InMemoryS3Client:
    """Simple in-memory S3 stub used by the audit middleware during tests."""

    exceptions = SimpleNamespace(NoSuchKey=type("NoSuchKey", (Exception,), {}))

    def __init__(self) -> None:
        self._buckets: dict[str, dict[str, bytes]] = {}

    def head_bucket(self, *, Bucket: str) -> None:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadBucket")

    def create_bucket(self, *, Bucket: str, **_: object) -> None:
        self._buckets.setdefault(Bucket, {})

    def get_object(self, *, Bucket: str, Key: str) -> dict[str, BytesIO]:
        if Bucket not in self._buckets:
            raise ClientError({"Error": {"Code": "NoSuchBucket"}}, "GetObject")
        bucket = self._buckets[Bucket]
        if Key not in bucket:
            raise self.exceptions.NoSuchKey()
        return {"Body": BytesIO(bucket[Key])}

    def put_object(self, *, Bucket: str, Key: str, Body: bytes, **_: object) -> dict[str, str]:
        bucket = self._buckets.setdefault(Bucket, {})
        bucket[Key] = Body.encode("utf-8") if isinstance(Body, str) else Body
        return {"ETag": "in-memory"}

    @property
    def buckets(self) -> dict[str, dict[str, bytes]]:
        return self._buckets


engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def audit_s3_client() -> InMemoryS3Client:
    return InMemoryS3Client()


@pytest.fixture()
def db_session() -> Iterator[Session]:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db_session: Session) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            db_session.rollback()

    app.dependency_overrides[get_db_session] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_db_session, None)
    app.state.dataset_store.clear()


@pytest.fixture()
def make_workbook() -> Callable[[Sequence[Mapping[str, Any]]], bytes]:
    """Build single-sheet ``.xlsx`` bytes from row mappings."""

    def _build(rows: Sequence[Mapping[str, Any]]) -> bytes:
        return write_workbook([("Sheet1", rows)])

    return _build


@pytest.fixture()
def acme_rows() -> list[dict[str, Any]]:
    return [
        {"Merchant Name": "Acme", "Date": "2024-01-05", "Withdrawal Amount": 100, "Withdrawal Fees": 5},
        {"Merchant Name": "Acme", "Date": "2024-01-20", "Withdrawal Amount": 200, "Withdrawal Fees": 10},
        {"Merchant Name": "Globex", "Date": "2024-01-10", "Withdrawal Amount": 50, "Withdrawal Fees": 1},
        {"Merchant Name": "Acme", "Date": "2024-02-01", "Withdrawal Amount": 999, "Withdrawal Fees": 9},
    ]
