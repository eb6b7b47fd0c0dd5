"""
==============================================================================
API v1 Endpoints
==============================================================================

Version 1 of the JSON API.

Routers:
--------
- health: Health check endpoints
- scanner: Scan session status and remote Done control

==============================================================================
"""

from . import health, scanner

__all__ = ["health", "scanner"]
