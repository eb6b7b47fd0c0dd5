"""
==============================================================================
Preview Overlay Module
==============================================================================

Live camera preview with a "Done" control.

Overlays:
---------
- HeadlessOverlay: no window; Done is pressed through the API
- WindowOverlay: top-most OpenCV window showing the feed, detection boxes
  and a Done button. Clicking the button, or pressing 'q' or Esc, presses
  Done.

Visual feedback (BGR colours):
  - GREEN: supported symbology
  - RED: recognised but unsupported symbology

All window calls happen on the capture thread; OpenCV's highgui requires
imshow/waitKey to run on the thread that created the window.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

import cv2
import numpy as np

from .exceptions import CaptureStartError
from .models import Detection


# Module logger
logger = logging.getLogger(__name__)


class OverlayColors:
    """Color constants for the preview (BGR format)."""

    GREEN = (0, 255, 0)
    RED = (0, 0, 255)
    BUTTON = (255, 255, 255)
    TEXT_BLACK = (0, 0, 0)
    TEXT_WHITE = (255, 255, 255)


class HeadlessOverlay:
    """
    Overlay for hosts without a display.

    Nothing is drawn; the Done control is only reachable via press_done().
    """

    def __init__(self) -> None:
        self._done = threading.Event()

    def attach(self) -> None:
        self._done.clear()

    def render(self, frame: np.ndarray, detections: List[Detection]) -> None:
        pass

    def press_done(self) -> None:
        self._done.set()

    @property
    def done_pressed(self) -> bool:
        return self._done.is_set()

    def detach(self) -> None:
        pass


class WindowOverlay(HeadlessOverlay):
    """
    Top-most OpenCV preview window with a Done button.

    Attributes:
        window_name: Title of the preview window
    """

    BUTTON_WIDTH = 100
    BUTTON_HEIGHT = 50
    QUIT_KEYS = (ord("q"), 27)

    def __init__(self, window_name: str = "Barcode Scanner") -> None:
        super().__init__()
        self.window_name = window_name
        self._button: Optional[Tuple[int, int, int, int]] = None
        self._attached = False

    def attach(self) -> None:
        """
        Create the preview window on top of everything else.

        Raises:
            CaptureStartError: If no window can be created (e.g. no display)
        """
        super().attach()
        try:
            cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
            cv2.setWindowProperty(self.window_name, cv2.WND_PROP_TOPMOST, 1)
            cv2.setMouseCallback(self.window_name, self._on_mouse)
        except cv2.error as e:
            raise CaptureStartError(f"cannot open preview window: {e}") from e
        self._attached = True
        logger.debug(f"Preview window '{self.window_name}' attached")

    def render(self, frame: np.ndarray, detections: List[Detection]) -> None:
        if not self._attached or frame is None:
            return

        view = frame.copy()
        for detection in detections:
            color = OverlayColors.GREEN if detection.symbology.is_supported else OverlayColors.RED
            label = detection.value if detection.value is not None else detection.symbology.value
            self._draw_colored_box(view, detection, label, color)

        self._draw_done_button(view)
        cv2.imshow(self.window_name, view)

        if cv2.waitKey(1) & 0xFF in self.QUIT_KEYS:
            logger.info("Done key pressed")
            self.press_done()

    def detach(self) -> None:
        if not self._attached:
            return
        self._attached = False
        try:
            cv2.destroyWindow(self.window_name)
            cv2.waitKey(1)
        except cv2.error as e:
            logger.warning(f"Preview window close error: {e}")
        logger.debug(f"Preview window '{self.window_name}' detached")

    # =========================================================================
    # DRAWING
    # =========================================================================

    def _draw_done_button(self, frame: np.ndarray) -> None:
        """Draw the Done button centred at the bottom edge of the frame."""
        height, width = frame.shape[:2]
        x0 = width // 2 - self.BUTTON_WIDTH // 2
        y0 = height - self.BUTTON_HEIGHT
        x1, y1 = x0 + self.BUTTON_WIDTH, height
        self._button = (x0, y0, x1, y1)

        cv2.rectangle(frame, (x0, y0), (x1, y1), OverlayColors.BUTTON, -1)

        font = cv2.FONT_HERSHEY_SIMPLEX
        (text_width, text_height), _ = cv2.getTextSize("Done", font, 0.7, 2)
        cv2.putText(
            frame, "Done",
            (x0 + (self.BUTTON_WIDTH - text_width) // 2, y0 + (self.BUTTON_HEIGHT + text_height) // 2),
            font, 0.7, OverlayColors.TEXT_BLACK, 2
        )

    @staticmethod
    def _draw_colored_box(
        frame: np.ndarray,
        detection: Detection,
        label: str,
        color: tuple,
        thickness: int = 3
    ) -> None:
        rect = detection.rect
        x, y, w, h = rect.x, rect.y, rect.width, rect.height

        cv2.rectangle(frame, (x, y), (x + w, y + h), color, thickness)

        font = cv2.FONT_HERSHEY_SIMPLEX
        label_size, _ = cv2.getTextSize(label, font, 0.6, 2)

        label_y = y - 10 if y - 10 > label_size[1] else y + h + label_size[1] + 10
        cv2.rectangle(
            frame,
            (x, label_y - label_size[1] - 5),
            (x + label_size[0] + 10, label_y + 5),
            color,
            -1
        )

        text_color = OverlayColors.TEXT_BLACK if color == OverlayColors.GREEN else OverlayColors.TEXT_WHITE
        cv2.putText(frame, label, (x + 5, label_y), font, 0.6, text_color, 2)

    def _on_mouse(self, event, x, y, flags, param) -> None:
        if event != cv2.EVENT_LBUTTONUP or self._button is None:
            return
        x0, y0, x1, y1 = self._button
        if x0 <= x <= x1 and y0 <= y <= y1:
            logger.info("Done button pressed")
            self.press_done()
