"""
==============================================================================
Schemas Package - Pydantic Models
==============================================================================

Request, response and scan result models.

This package provides:
- Common: JSON API response wrappers
- Service: Request/response descriptors and the scan result payload

==============================================================================
"""

from .common import SuccessResponse, MessageResponse, ScannerStatus
from .service import (
    BARCODE_KEY,
    ERROR_KEY,
    HandlerResult,
    RequestDescriptor,
    ResponseDescriptor,
    ResultKind,
    ResultPayload,
)

__all__ = [
    # Common
    "SuccessResponse",
    "MessageResponse",
    "ScannerStatus",
    # Service
    "BARCODE_KEY",
    "ERROR_KEY",
    "HandlerResult",
    "RequestDescriptor",
    "ResponseDescriptor",
    "ResultKind",
    "ResultPayload",
]
