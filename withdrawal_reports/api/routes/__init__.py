"""Top level API router registration."""
from fastapi import APIRouter, FastAPI

from withdrawal_reports.api.routes import health, reports, uploads


def register_routes(application: FastAPI) -> None:
    """Register all API routers with the FastAPI application."""
    api_router = APIRouter(prefix="/api")

    api_router.include_router(health.router, tags=["health"])
    api_router.include_router(uploads.router, tags=["uploads"])
    api_router.include_router(reports.router, tags=["reports"])

    application.include_router(api_router)


__all__ = ["register_routes"]
