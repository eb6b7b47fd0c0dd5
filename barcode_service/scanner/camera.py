"""
==============================================================================
Camera Module
==============================================================================

Default video input device.

CameraDevice wraps an OpenCV VideoCapture. Opening returns None when no
device answers at the configured index, and raises CaptureStartError when a
device exists but cannot be brought up.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Tuple

import cv2
import numpy as np

from .exceptions import CaptureStartError


# Module logger
logger = logging.getLogger(__name__)


class CameraDevice:
    """
    Default video input device.

    Attributes:
        index: OpenCV camera index

    Example:
        >>> device = CameraDevice.open_default(0)
        >>> ok, frame = device.read()
        >>> device.release()
    """

    def __init__(self, capture: "cv2.VideoCapture", index: int = 0) -> None:
        self._capture = capture
        self._lock = threading.Lock()
        self.index = index

    @classmethod
    def open_default(
        cls,
        index: int = 0,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> Optional["CameraDevice"]:
        """
        Open the camera at `index`.

        Args:
            index: OpenCV camera index
            width: Requested frame width (None keeps device default)
            height: Requested frame height (None keeps device default)

        Returns:
            Opened device, or None if no camera answers at `index`

        Raises:
            CaptureStartError: If the camera opened but cannot stream
        """
        try:
            capture = cv2.VideoCapture(index)
        except cv2.error as e:
            raise CaptureStartError(str(e)) from e

        if not capture.isOpened():
            capture.release()
            logger.error(f"No camera at index {index}")
            return None

        device = cls(capture, index)
        try:
            device.configure(width, height)
            ok, _ = device.read()
            if not ok:
                raise CaptureStartError(f"camera {index} opened but delivered no frames")
        except cv2.error as e:
            device.release()
            raise CaptureStartError(str(e)) from e
        except CaptureStartError:
            device.release()
            raise

        logger.info(f"📷 Camera {index} opened")
        return device

    def configure(self, width: Optional[int], height: Optional[int]) -> None:
        """Request a capture resolution; the driver may pick the nearest mode."""
        if width:
            self._capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        if height:
            self._capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

    def read(self) -> Tuple[bool, Optional[np.ndarray]]:
        with self._lock:
            if self._capture is None:
                return False, None
            return self._capture.read()

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def release(self) -> None:
        """Release the device. Safe to call more than once."""
        with self._lock:
            if self._capture is None:
                return
            self._capture.release()
            self._capture = None
        logger.debug(f"Camera {self.index} released")
