"""
Application Exception Handling

Single AppException class for application errors with FastAPI integration.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


# Module logger
logger = logging.getLogger(__name__)


class AppException(Exception):
    """
    Unified application exception for all error scenarios.

    Provides consistent error response format across the JSON API.

    Usage:
        raise AppException("No scan in progress", "NO_SCAN_IN_PROGRESS", 409)

    Error Codes:
        Scanner:
            - NO_SCAN_IN_PROGRESS (409)
            - SERIALIZATION_ERROR (500)

        General:
            - INTERNAL_ERROR (500)
    """

    def __init__(
        self,
        message: str,
        code: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize application exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code (e.g., "NO_SCAN_IN_PROGRESS")
            status_code: HTTP status code (default: 400)
            details: Additional error context (optional)
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        error_dict = {
            "success": False,
            "error": {
                "code": self.code,
                "message": self.message,
                "timestamp": self.timestamp
            }
        }

        if self.details:
            error_dict["error"]["details"] = self.details

        return error_dict


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    FastAPI exception handler for AppException.

    Converts AppException to consistent JSON error response.
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)


# ============================================
# CONVENIENCE FACTORY FUNCTIONS
# ============================================

def no_scan_in_progress() -> AppException:
    """Create exception for cancelling while the scanner is idle."""
    return AppException("No scan in progress", "NO_SCAN_IN_PROGRESS", 409)


def serialization_failed(reason: str) -> AppException:
    """Create exception for a scan result that could not be encoded."""
    return AppException(
        "Scan result could not be serialized",
        "SERIALIZATION_ERROR",
        500,
        {"reason": reason}
    )


def internal_error(message: str = "Internal server error") -> AppException:
    """Create internal server error exception."""
    return AppException(message, "INTERNAL_ERROR", 500)
