"""
Builds the production scan session from settings.

OpenCV and pyzbar are imported here, not at package import, so the session
and handler can be used with injected collaborators on hosts that lack the
native camera and zbar libraries.
"""

from __future__ import annotations

import logging
from functools import partial

from barcode_service.config import Settings

from .permissions import CameraAuthorization, CameraAuthorizer
from .session import ScanSession


# Module logger
logger = logging.getLogger(__name__)


def build_scan_session(settings: Settings) -> ScanSession:
    """Wire the OpenCV camera, pyzbar decoder and preview overlay."""
    from .camera import CameraDevice
    from .decoder import FrameDecoder
    from .overlay import HeadlessOverlay, WindowOverlay

    authorizer = CameraAuthorizer(
        CameraAuthorization(settings.camera_permission),
        grant_on_request=settings.camera_grant_on_request,
    )

    open_camera = partial(
        CameraDevice.open_default,
        settings.camera_index,
        settings.camera_width,
        settings.camera_height,
    )

    if settings.preview_enabled:
        overlay_factory = partial(WindowOverlay, settings.preview_window_name)
    else:
        overlay_factory = HeadlessOverlay

    logger.info(
        f"Scan session ready (camera {settings.camera_index}, "
        f"permission {settings.camera_permission}, "
        f"preview {'on' if settings.preview_enabled else 'off'})"
    )

    return ScanSession(
        authorizer=authorizer,
        open_camera=open_camera,
        decoder=FrameDecoder(),
        overlay_factory=overlay_factory,
        scan_timeout=settings.scan_timeout,
    )
