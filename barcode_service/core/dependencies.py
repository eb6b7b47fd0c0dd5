"""
==============================================================================
FastAPI Dependencies Module
==============================================================================

Dependency injection for the scan session and request handler.

The application stores its ScanSession on `app.state.scan_session` during
startup; routes receive it (or a handler bound to it) through Depends, so
tests can swap either one with `app.dependency_overrides`.

Usage:
------
    @router.get("/status")
    async def status(session: ScanSession = Depends(get_scan_session)):
        return {"state": session.state.value}

==============================================================================
"""

from __future__ import annotations

from fastapi import Depends, Request

from barcode_service.core.exceptions import internal_error
from barcode_service.scanner import ScanSession
from barcode_service.services import RequestHandler


def get_scan_session(request: Request) -> ScanSession:
    """Return the application's scan session."""
    session = getattr(request.app.state, "scan_session", None)
    if session is None:
        raise internal_error("Scan session not initialized")
    return session


def get_request_handler(
    session: ScanSession = Depends(get_scan_session)
) -> RequestHandler:
    """Return a request handler bound to the application's scan session."""
    return RequestHandler(session)
