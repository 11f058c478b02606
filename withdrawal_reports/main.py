"""FastAPI application entrypoint."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from withdrawal_reports.api.routes import register_routes
from withdrawal_reports.core.config import Settings, get_settings
from withdrawal_reports.core.logging import configure_logging
from withdrawal_reports.db.session import SessionLocal, init_db
from withdrawal_reports.obs import (
    AuditMiddleware,
    PrometheusMiddleware,
    initialise_tracing,
    instrument_fastapi_app,
    metrics_router,
)
from withdrawal_reports.services.datasets import DatasetStore
from withdrawal_reports.services.history import rehydrate_store

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return f"{location}: {message}" if location else message


def create_application(settings: Settings | None = None) -> FastAPI:
    """Application factory used by ASGI servers and tests."""
    settings = settings or get_settings()
    configure_logging(settings)

    if settings.enable_tracing:
        initialise_tracing(service_name=settings.app_name, endpoint=settings.otel_exporter_endpoint)

    @asynccontextmanager
    async def lifespan(application: FastAPI) -> AsyncIterator[None]:
        init_db()
        if settings.rehydrate_on_startup:
            with SessionLocal() as session:
                rehydrate_store(session, application.state.dataset_store)
        yield

    application = FastAPI(
        title=settings.app_name,
        version=settings.version,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        lifespan=lifespan,
    )
    application.state.dataset_store = DatasetStore(settings.panels)

    application.add_middleware(AuditMiddleware, settings=settings)
    if settings.enable_metrics:
        application.add_middleware(PrometheusMiddleware)
        application.include_router(metrics_router)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.client_origin.split(",")],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    register_routes(application)

    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    application.mount(settings.output_url_prefix, StaticFiles(directory=output_dir), name="output")

    @application.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @application.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    if settings.enable_tracing:
        instrument_fastapi_app(application)

    logger.info("application configured", extra={"panels": list(settings.panels)})
    return application


app = create_application()
