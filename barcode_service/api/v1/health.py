"""
==============================================================================
Health Check Endpoints
==============================================================================

System health status endpoints for monitoring and orchestration.

==============================================================================
"""

from fastapi import APIRouter, Depends

from barcode_service.core.dependencies import get_scan_session
from barcode_service.scanner import CameraAuthorization, ScanSession


router = APIRouter(prefix="/health", tags=["Health"])


class HealthController:
    """Controller for health check operations."""

    def __init__(self, session: ScanSession):
        self._session = session

    def check_camera_access(self) -> str:
        """Report whether scans can reach the camera."""
        status = self._session.authorization_status()
        if status in (CameraAuthorization.AUTHORIZED, CameraAuthorization.NOT_DETERMINED):
            return "healthy"
        return "unavailable"

    def get_health(self) -> dict:
        """Get full health status."""
        camera_status = self.check_camera_access()
        overall = "healthy" if camera_status == "healthy" else "degraded"

        return {
            "status": overall,
            "components": {
                "api": "healthy",
                "camera_access": camera_status,
                "scanner": self._session.state.value
            }
        }


@router.get("")
async def health_check(session: ScanSession = Depends(get_scan_session)):
    """
    Health check endpoint.

    Returns API status, camera permission and scanner state.
    """
    controller = HealthController(session)
    return controller.get_health()


@router.get("/ready")
async def readiness_check():
    """Readiness probe for container orchestration."""
    return {"ready": True}


@router.get("/live")
async def liveness_check():
    """Liveness probe for container orchestration."""
    return {"alive": True}
