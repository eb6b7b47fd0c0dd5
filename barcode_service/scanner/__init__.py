"""
==============================================================================
Scanner Package - Camera Barcode Scanning
==============================================================================

Single-shot barcode scanning with OpenCV and pyzbar.

Classes:
--------
- ScanSession: Permission → capture → first match state machine
- CapturePipeline: Threaded camera/decoder/overlay loop
- CameraAuthorizer: Camera permission model

Hardware modules (camera, decoder, overlay) are loaded by
`build_scan_session`.

==============================================================================
"""

from .exceptions import CaptureStartError, ScannerBusyError
from .factory import build_scan_session
from .models import BoundingBox, Detection, ScanState
from .permissions import CameraAuthorization, CameraAuthorizer
from .pipeline import CapturePipeline
from .session import ScanMessages, ScanSession
from .symbology import SUPPORTED_SYMBOLOGIES, Symbology

__all__ = [
    "BoundingBox",
    "CameraAuthorization",
    "CameraAuthorizer",
    "CapturePipeline",
    "CaptureStartError",
    "Detection",
    "ScanMessages",
    "ScanSession",
    "ScanState",
    "ScannerBusyError",
    "SUPPORTED_SYMBOLOGIES",
    "Symbology",
    "build_scan_session",
]
