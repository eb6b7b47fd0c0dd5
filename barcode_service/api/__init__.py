"""
==============================================================================
API Package
==============================================================================

- router: JSON API under /api/v1
- service: HTTP transport for the barcode scanner service

==============================================================================
"""

from .router import api_router
from .service import router as service_router

__all__ = ["api_router", "service_router"]
