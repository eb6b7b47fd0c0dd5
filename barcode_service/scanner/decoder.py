"""
==============================================================================
Frame Decoder Module
==============================================================================

Turns camera frames into detections using pyzbar.

Detections keep the order zbar reports them in; the scan session only looks
at the first one. A code whose payload is not valid UTF-8 is still reported,
with `value` set to None.

==============================================================================
"""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np
from pyzbar.pyzbar import decode

from .models import BoundingBox, Detection
from .symbology import Symbology


# Module logger
logger = logging.getLogger(__name__)


class FrameDecoder:
    """
    pyzbar-backed frame decoder.

    Example:
        >>> decoder = FrameDecoder()
        >>> detections = decoder.decode(frame)
        >>> [d.symbology for d in detections]
        [<Symbology.QR: 'qr'>]
    """

    def decode(self, frame: Optional[np.ndarray]) -> List[Detection]:
        """
        Decode every code visible in a frame.

        Args:
            frame: OpenCV image (numpy array)

        Returns:
            Detections in zbar order; empty if the frame is blank or unreadable
        """
        if frame is None or frame.size == 0:
            return []

        try:
            barcodes = decode(frame)
        except Exception as e:
            logger.error(f"Decode error: {e}")
            return []

        return [self._to_detection(barcode) for barcode in barcodes]

    @staticmethod
    def _to_detection(barcode) -> Detection:
        try:
            value = barcode.data.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning(f"Undecodable {barcode.type} payload ({len(barcode.data)} bytes)")
            value = None

        left, top, width, height = barcode.rect
        return Detection(
            symbology=Symbology.from_zbar(barcode.type),
            value=value,
            rect=BoundingBox(x=left, y=top, width=width, height=height),
        )
