"""SQLAlchemy engine and session factory for the upload and report history."""
from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker

from withdrawal_reports.core.config import get_settings
from withdrawal_reports.models import Base
from withdrawal_reports.obs import instrument_sqlalchemy_engine


def build_engine(database_url: str, *, tracing: bool = False) -> Engine:
    # SQLite connections are shared between the threadpool workers serving requests.
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    bind = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    if tracing:
        instrument_sqlalchemy_engine(bind)
    return bind


def init_db(bind: Engine | None = None) -> None:
    """Create the history tables that do not exist yet."""
    Base.metadata.create_all(bind=bind or engine)


settings = get_settings()
engine = build_engine(settings.database_url, tracing=settings.enable_tracing)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


__all__ = ["SessionLocal", "build_engine", "engine", "init_db"]
