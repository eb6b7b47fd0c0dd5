"""
==============================================================================
Capture Pipeline Module
==============================================================================

Background capture loop: camera → decoder → overlay.

The loop runs on a daemon thread and never touches scan state directly.
Everything it observes is handed to `dispatch` (normally the event loop's
call_soon_threadsafe), so all state changes happen on the event loop.

Notifications:
-------------
- on_batch(detections): every frame that contains codes, plus one empty
  batch when codes disappear after having been seen. Frames that stay
  empty produce nothing.
- on_done(): the overlay's Done control was pressed.
- on_failure(detail): the camera stopped delivering frames, or reading,
  decoding or rendering a frame raised.

The thread owns the overlay and the device and releases both, overlay
first, when the loop exits.

==============================================================================
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, List, Optional

from .exceptions import CaptureStartError
from .models import Detection


# Module logger
logger = logging.getLogger(__name__)

Dispatch = Callable[..., Any]


class CapturePipeline:
    """
    Threaded capture loop for one scan.

    Attributes:
        max_read_failures: Consecutive failed reads before giving up
        start_timeout: Seconds to wait for the overlay to come up

    Example:
        >>> pipeline = CapturePipeline(device, decoder, overlay, loop.call_soon_threadsafe,
        ...                            on_batch=print, on_done=stop, on_failure=fail)
        >>> pipeline.start()
        >>> pipeline.stop()
    """

    max_read_failures = 5
    start_timeout = 10.0

    def __init__(
        self,
        device,
        decoder,
        overlay,
        dispatch: Dispatch,
        on_batch: Callable[[List[Detection]], None],
        on_done: Callable[[], None],
        on_failure: Callable[[str], None],
        frame_interval: float = 0.0
    ) -> None:
        self._device = device
        self._decoder = decoder
        self._overlay = overlay
        self._dispatch = dispatch
        self._on_batch = on_batch
        self._on_done = on_done
        self._on_failure = on_failure
        self._frame_interval = frame_interval

        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._ready = threading.Event()
        self._start_error: Optional[CaptureStartError] = None
        self._device_released = False

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """
        Start the capture thread and wait until the overlay is attached.

        Raises:
            CaptureStartError: If the overlay could not be attached or the
                pipeline was stopped first; the device has been released
                by the time this is raised
        """
        with self._lock:
            if self._stop_event.is_set():
                self._release_device()
                raise CaptureStartError("capture stopped before it started")

            thread = threading.Thread(
                target=self._run, name="capture-pipeline", daemon=True
            )
            try:
                thread.start()
            except RuntimeError as e:
                self._release_device()
                raise CaptureStartError(f"cannot start capture thread: {e}") from e
            self._thread = thread

            if not self._ready.wait(self.start_timeout):
                # The thread releases the device once attach() returns.
                self._stop_event.set()
                raise CaptureStartError("preview did not start in time")

            if self._start_error is not None:
                self._thread.join()
                raise self._start_error

    def stop(self) -> None:
        """Stop frame delivery and wait for the thread to release its resources."""
        self._stop_event.set()
        with self._lock:
            thread = self._thread
        if thread is None:
            # Never started, so the device is still ours to release.
            self._release_device()
        elif thread is not threading.current_thread():
            thread.join()

    # =========================================================================
    # CAPTURE LOOP
    # =========================================================================

    def _run(self) -> None:
        try:
            try:
                self._overlay.attach()
            except CaptureStartError as e:
                self._start_error = e
                return
            finally:
                self._ready.set()

            logger.info("📷 Capture started")
            try:
                self._loop()
            except Exception as e:
                logger.exception("Capture loop failed")
                self._notify(self._on_failure, str(e) or type(e).__name__)
        finally:
            self._release()

    def _loop(self) -> None:
        had_codes = False
        failures = 0

        while not self._stop_event.is_set():
            if self._overlay.done_pressed:
                self._notify(self._on_done)
                return

            ok, frame = self._device.read()
            if not ok:
                failures += 1
                if failures >= self.max_read_failures:
                    logger.warning(f"Camera returned no frame {failures} times in a row")
                    self._notify(self._on_failure, f"no frame after {failures} reads")
                    return
                continue
            failures = 0

            detections = self._decoder.decode(frame)
            if detections:
                had_codes = True
                self._notify(self._on_batch, detections)
            elif had_codes:
                had_codes = False
                self._notify(self._on_batch, [])

            self._overlay.render(frame, detections)

            if self._frame_interval:
                time.sleep(self._frame_interval)

    def _notify(self, callback: Callable[..., None], *args) -> None:
        if self._stop_event.is_set():
            return
        try:
            self._dispatch(callback, *args)
        except RuntimeError as e:
            # Event loop closed underneath us.
            logger.error(f"Dispatch failed, stopping capture: {e}")
            self._stop_event.set()

    def _release(self) -> None:
        try:
            self._overlay.detach()
        finally:
            self._release_device()
            logger.info("📷 Capture stopped")

    def _release_device(self) -> None:
        if self._device_released:
            return
        self._device_released = True
        self._device.release()
