"""
==============================================================================
Barcode Scanner Service - Application Entry Point
==============================================================================

FastAPI application exposing the device camera to web pages:
- GET /barcodescanner scans one barcode and answers with JSON
- JSON API for health and scanner control under /api/v1
- Demo page under /static

Usage:
------
    # Development
    uvicorn barcode_service.main:app --reload

    # Production
    uvicorn barcode_service.main:app --host 0.0.0.0 --port 8000

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from barcode_service import __version__
from barcode_service.api import api_router, service_router
from barcode_service.config import Settings, get_settings
from barcode_service.core.exceptions import register_exception_handlers
from barcode_service.scanner import ScanSession, build_scan_session


# ============================================================================
# LOGGING SETUP
# ============================================================================

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

class Application:
    """
    FastAPI application factory and manager.

    Handles application lifecycle including:
    - Scan session creation and shutdown
    - Middleware configuration
    - Router registration
    - Exception handler setup

    Args:
        settings: Settings to use (global settings if None)
        scan_session: Pre-built session; built from settings on startup if None
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        scan_session: Optional[ScanSession] = None
    ):
        """Initialize the application."""
        self._settings = settings or get_settings()
        self._scan_session = scan_session
        self._app = self._create_app()

    def _create_app(self) -> FastAPI:
        """Create and configure the FastAPI application."""
        app = FastAPI(
            title=self._settings.app_name,
            version=__version__,
            description="Camera barcode scanning for web applications",
            lifespan=self._lifespan,
            docs_url=None if self._settings.is_production else "/docs",
            redoc_url=None if self._settings.is_production else "/redoc",
        )

        self._configure_middleware(app)
        register_exception_handlers(app)

        # Order matters: the service route matches every path, so it goes last.
        app.include_router(api_router)
        app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
        self._register_root(app)
        app.include_router(service_router)

        return app

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Application lifespan manager."""
        self._startup(app)
        yield
        await self._shutdown(app)

    def _startup(self, app: FastAPI) -> None:
        """Application startup tasks."""
        logger.info("=" * 60)
        logger.info(f"🚀 Starting {self._settings.app_name}")
        logger.info("=" * 60)

        if self._scan_session is None:
            self._scan_session = build_scan_session(self._settings)
        app.state.scan_session = self._scan_session

        logger.info("=" * 60)
        logger.info(f"✅ {self._settings.app_name} ready")
        logger.info(f"📍 Scan endpoint: http://{self._settings.host}:{self._settings.port}/barcodescanner")
        logger.info(f"🌐 Demo page: http://{self._settings.host}:{self._settings.port}/static/index.html")
        logger.info("=" * 60)

    async def _shutdown(self, app: FastAPI) -> None:
        """Application shutdown tasks."""
        logger.info("🛑 Shutting down...")
        if self._scan_session is not None:
            await self._scan_session.close()
        logger.info("✅ Shutdown complete")

    def _configure_middleware(self, app: FastAPI) -> None:
        """Configure application middleware."""
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._settings.cors_origins_list,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    def _register_root(self, app: FastAPI) -> None:
        """Register root endpoint."""

        @app.get("/", include_in_schema=False)
        async def root():
            """Redirect to the demo page."""
            return RedirectResponse(url="/static/index.html")

    @property
    def app(self) -> FastAPI:
        """Get the FastAPI application instance."""
        return self._app


# ============================================================================
# APPLICATION INSTANCE
# ============================================================================

application = Application()
app = application.app


# ============================================================================
# ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "barcode_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug and settings.is_development,
        log_level="debug" if settings.debug else "info"
    )
