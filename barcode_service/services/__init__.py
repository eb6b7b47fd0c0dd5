"""
==============================================================================
Services Package - Business Logic Layer
==============================================================================

This package provides:
- RequestHandler: Validates service requests and runs scans

Architecture:
-------------
    ┌─────────────────┐
    │ Transport (API) │  ← Starlette request / response
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │ RequestHandler  │  ← Validation, result serialization
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  ScanSession    │  ← Camera lifecycle
    └─────────────────┘

==============================================================================
"""

from .request_handler import RequestHandler, SERVICE_IDENTIFIER

__all__ = [
    "RequestHandler",
    "SERVICE_IDENTIFIER",
]
