"""
==============================================================================
Camera Permissions Module
==============================================================================

Camera authorization model.

Authorization States:
--------------------
- AUTHORIZED: capture may start immediately
- DENIED: access was refused earlier
- RESTRICTED: this host is not allowed to use the camera
- NOT_DETERMINED: access has never been asked for; the first scan asks

==============================================================================
"""

from __future__ import annotations

import enum
import logging


# Module logger
logger = logging.getLogger(__name__)


class CameraAuthorization(str, enum.Enum):
    """Camera permission state."""

    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"


class CameraAuthorizer:
    """
    Settings-backed camera permission model.

    A request for access is answered once; the answer sticks for the life
    of the process, the same way an OS permission prompt does.

    Example:
        >>> authorizer = CameraAuthorizer(CameraAuthorization.NOT_DETERMINED)
        >>> granted = await authorizer.request_access()
        >>> authorizer.authorization_status()
        <CameraAuthorization.AUTHORIZED: 'authorized'>
    """

    def __init__(
        self,
        status: CameraAuthorization = CameraAuthorization.AUTHORIZED,
        grant_on_request: bool = True
    ) -> None:
        self._status = CameraAuthorization(status)
        self._grant_on_request = grant_on_request

    def authorization_status(self) -> CameraAuthorization:
        return self._status

    async def request_access(self) -> bool:
        """Ask for camera access; only meaningful while NOT_DETERMINED."""
        if self._status is not CameraAuthorization.NOT_DETERMINED:
            return self._status is CameraAuthorization.AUTHORIZED

        granted = self._grant_on_request
        self._status = (
            CameraAuthorization.AUTHORIZED if granted else CameraAuthorization.DENIED
        )
        logger.info(f"Camera access {'granted' if granted else 'denied'}")
        return granted
