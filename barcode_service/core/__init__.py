"""
==============================================================================
Core Package
==============================================================================

Core infrastructure for the application.

Modules:
--------
- exceptions: AppException class and error factory functions
- dependencies: FastAPI dependency injection functions

Usage:
------
    from barcode_service.core import AppException
    from barcode_service.core.dependencies import get_scan_session

    from barcode_service.core import exceptions
    raise exceptions.no_scan_in_progress()

==============================================================================
"""

from .exceptions import (
    AppException,
    register_exception_handlers,
)

__all__ = [
    "AppException",
    "register_exception_handlers",
]
