"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and services, registers routers, and runs startup
initialization.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from frontdesk.controllers.dashboard_controller import router as dashboard_router
from frontdesk.controllers.room_controller import router as room_router
from frontdesk.repository.data_repository import DataRepository
from frontdesk.services.auth_service import AuthService
from frontdesk.services.dashboard_service import DashboardService
from frontdesk.services.room_service import RoomWorkflowService
from frontdesk.utils.config import get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services share one repository and are exposed through app.state so the
    controller dependencies can resolve them per request.
    """
    settings = get_settings()

    # --- Repository (SQLite connection factory) ---
    repository = DataRepository(settings)

    # --- Services ---
    room_service = RoomWorkflowService(repository=repository, settings=settings)
    dashboard_service = DashboardService(repository=repository, settings=settings)
    auth_service = AuthService(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(room_router)
    app.include_router(dashboard_router)

    app.state.repository = repository
    app.state.room_service = room_service
    app.state.dashboard_service = dashboard_service
    app.state.auth_service = auth_service

    return app


def _startup(app: FastAPI) -> None:
    """
    Idempotent startup sequence. Safe to re-run on server restarts.

    The schema must exist before the default rooms are seeded.
    """
    repository: DataRepository = app.state.repository

    logger.info("Startup: initializing database schema at %s", repository.database_path)
    repository.initialize_database()

    logger.info("Startup: seeding default rooms (skipped if Rooms table not empty)")
    repository.seed_rooms_if_empty()

    if not app.state.auth_service.auth_enabled:
        logger.warning("ADMIN_TOKEN is not set; mutating endpoints are unauthenticated")

    logger.info("Startup complete")


# Module-level app object for uvicorn
app = create_app()
