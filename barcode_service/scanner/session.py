"""
==============================================================================
Scan Session Module
==============================================================================

Single-shot scan state machine: permission → capture → first match.

State Machine:
-------------
    IDLE ──scan()──▶ CHECKING_PERMISSION
        authorized ─────────────────────────▶ CAPTURING
        denied / restricted / refused ──────▶ IDLE  (error)
        Done ───────────────────────────────▶ STOPPING ▶ IDLE  (error)
    CAPTURING
        no camera / start failure ──────────▶ IDLE  (error)
        pipeline running ───────────────────▶ WAITING_FOR_DETECTION
    WAITING_FOR_DETECTION
        empty batch ────────────────────────▶ (error, stays)
        supported code with text ───────────▶ STOPPING ▶ IDLE  (barcode)
        Done / timeout / camera failure ────▶ STOPPING ▶ IDLE  (error)

The capture pipeline is the resource bundle of a scan: it is created on
entering CAPTURING and stopped exactly once in STOPPING. The session moves
to IDLE before the final payload is emitted, so a callback may start the
next scan straight away.

Every method here must be called on the event loop that runs the session.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Callable, List, Optional

from barcode_service.schemas.service import ResultPayload

from .exceptions import CaptureStartError, ScannerBusyError
from .models import Detection, ScanState
from .permissions import CameraAuthorization, CameraAuthorizer
from .pipeline import CapturePipeline


# Module logger
logger = logging.getLogger(__name__)

ResultCallback = Callable[[ResultPayload], None]

_CANCELLABLE = (
    ScanState.CHECKING_PERMISSION,
    ScanState.CAPTURING,
    ScanState.WAITING_FOR_DETECTION,
)


class ScanMessages:
    """Error texts returned to web clients."""

    DENIED = "Denied - User has already denied access to camera."
    RESTRICTED = "Restricted - User not authorized to access camera."
    ACCESS_REFUSED = "Access to camera denied"
    NO_CAMERA = "No camera present"
    START_FAILED = "unable to start video capture - {detail}"
    # Sent when codes leave the frame; clients already match on this text.
    EMPTY_BATCH = "Barcode/QR code is detected"
    USER_CANCELLED = "User cancelled"
    TIMED_OUT = "Scan timed out"
    INTERRUPTED = "video capture interrupted - {detail}"
    SHUTTING_DOWN = "Scanner shutting down"


class ScanSession:
    """
    Owns the camera for one scan at a time.

    Attributes:
        scan_timeout: Seconds to wait for a code (None = wait until Done)

    Example:
        >>> session = ScanSession(authorizer, open_camera, decoder, overlay_factory)
        >>> session.scan(on_error=reply, on_success=reply)
    """

    def __init__(
        self,
        authorizer: CameraAuthorizer,
        open_camera: Callable[[], object],
        decoder,
        overlay_factory: Callable[[], object],
        pipeline_factory: Callable[..., CapturePipeline] = CapturePipeline,
        scan_timeout: Optional[float] = None
    ) -> None:
        self._authorizer = authorizer
        self._open_camera = open_camera
        self._decoder = decoder
        self._overlay_factory = overlay_factory
        self._pipeline_factory = pipeline_factory
        self.scan_timeout = scan_timeout

        self._state = ScanState.IDLE
        self._scan_id = 0
        self._on_error: Optional[ResultCallback] = None
        self._on_success: Optional[ResultCallback] = None
        self._pipeline: Optional[CapturePipeline] = None
        self._task: Optional[asyncio.Task] = None
        self._teardown_task: Optional[asyncio.Task] = None
        self._timeout_handle: Optional[asyncio.TimerHandle] = None

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @property
    def state(self) -> ScanState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._state is not ScanState.IDLE

    def authorization_status(self) -> CameraAuthorization:
        return self._authorizer.authorization_status()

    def scan(self, on_error: ResultCallback, on_success: ResultCallback) -> None:
        """
        Start a scan. Results arrive through the two callbacks.

        Raises:
            ScannerBusyError: If a scan is already in flight
        """
        if self.busy:
            raise ScannerBusyError(f"scan already in progress ({self._state.value})")

        self._scan_id += 1
        self._on_error = on_error
        self._on_success = on_success
        self._enter(ScanState.CHECKING_PERMISSION)
        self._task = asyncio.get_running_loop().create_task(self._run(self._scan_id))

    def cancel(self) -> bool:
        """
        Press the Done control of the scan in flight.

        Returns:
            False if no scan is running or it is already stopping
        """
        if self._state not in _CANCELLABLE:
            return False
        self._handle_done(self._scan_id)
        return True

    async def close(self) -> None:
        """Abort any scan in flight and wait until the camera is released."""
        if self._state in _CANCELLABLE:
            self._complete(ResultPayload.error(ScanMessages.SHUTTING_DOWN))

        for task in (self._task, self._teardown_task):
            if task is not None:
                await task

    # =========================================================================
    # PERMISSION
    # =========================================================================

    async def _run(self, scan_id: int) -> None:
        try:
            await self._check_permission(scan_id)
        except Exception as e:
            logger.exception("Scan failed unexpectedly")
            if self._is_current(scan_id, ScanState.CHECKING_PERMISSION, ScanState.CAPTURING):
                self._complete(ResultPayload.error(ScanMessages.START_FAILED.format(detail=e)))

    async def _check_permission(self, scan_id: int) -> None:
        if not self._is_current(scan_id, ScanState.CHECKING_PERMISSION):
            return

        status = self._authorizer.authorization_status()
        logger.debug(f"Camera authorization: {status.value}")

        if status is CameraAuthorization.AUTHORIZED:
            await self._start_capture(scan_id)
        elif status is CameraAuthorization.DENIED:
            self._finish(ResultPayload.error(ScanMessages.DENIED))
        elif status is CameraAuthorization.RESTRICTED:
            self._finish(ResultPayload.error(ScanMessages.RESTRICTED))
        else:
            granted = await self._authorizer.request_access()
            if not self._is_current(scan_id, ScanState.CHECKING_PERMISSION):
                return
            if granted:
                await self._start_capture(scan_id)
            else:
                self._finish(ResultPayload.error(ScanMessages.ACCESS_REFUSED))

    # =========================================================================
    # CAPTURE
    # =========================================================================

    async def _start_capture(self, scan_id: int) -> None:
        if not self._is_current(scan_id, ScanState.CHECKING_PERMISSION):
            return
        self._enter(ScanState.CAPTURING)

        try:
            device = await asyncio.to_thread(self._open_camera)
        except CaptureStartError as e:
            logger.error(f"Camera start failed: {e}")
            if self._is_current(scan_id, ScanState.CAPTURING):
                self._finish(ResultPayload.error(ScanMessages.START_FAILED.format(detail=e)))
            return

        if not self._is_current(scan_id, ScanState.CAPTURING):
            if device is not None:
                device.release()
            return

        if device is None:
            logger.error("Error: no camera")
            self._finish(ResultPayload.error(ScanMessages.NO_CAMERA))
            return

        loop = asyncio.get_running_loop()
        try:
            pipeline = self._pipeline_factory(
                device=device,
                decoder=self._decoder,
                overlay=self._overlay_factory(),
                dispatch=loop.call_soon_threadsafe,
                on_batch=partial(self._handle_batch, scan_id),
                on_done=partial(self._handle_done, scan_id),
                on_failure=partial(self._handle_failure, scan_id),
            )
        except Exception:
            device.release()
            raise

        # Owned by the session from here on; teardown stops it.
        self._pipeline = pipeline

        try:
            await asyncio.to_thread(pipeline.start)
        except CaptureStartError as e:
            logger.error(f"Capture start failed: {e}")
            if self._is_current(scan_id, ScanState.CAPTURING):
                self._pipeline = None
                self._finish(ResultPayload.error(ScanMessages.START_FAILED.format(detail=e)))
            return

        if not self._is_current(scan_id, ScanState.CAPTURING):
            # Finished while the pipeline was coming up.
            return

        self._enter(ScanState.WAITING_FOR_DETECTION)

        if self.scan_timeout:
            self._timeout_handle = loop.call_later(
                self.scan_timeout, self._handle_timeout, scan_id
            )

    # =========================================================================
    # PIPELINE NOTIFICATIONS
    # =========================================================================

    def _handle_batch(self, scan_id: int, detections: List[Detection]) -> None:
        # Frames can arrive before start() has returned to the loop.
        if not self._is_current(scan_id, ScanState.CAPTURING, ScanState.WAITING_FOR_DETECTION):
            return

        if not detections:
            # Does not end the scan; the camera keeps running.
            self._emit(ResultPayload.error(ScanMessages.EMPTY_BATCH))
            return

        first = detections[0]
        if not first.symbology.is_supported:
            return

        if first.value is None:
            logger.warning(f"{first.symbology.value} code has no text value, still scanning")
            return

        logger.info(f"✅ Detected {first.symbology.value}: {first.value}")
        self._complete(ResultPayload.barcode(first.value))

    def _handle_done(self, scan_id: int) -> None:
        if not self._is_current(scan_id, *_CANCELLABLE):
            return
        logger.info("🛑 Scan cancelled by user")
        self._complete(ResultPayload.error(ScanMessages.USER_CANCELLED))

    def _handle_timeout(self, scan_id: int) -> None:
        self._timeout_handle = None
        if not self._is_current(scan_id, ScanState.WAITING_FOR_DETECTION):
            return
        logger.info(f"Scan timed out after {self.scan_timeout}s")
        self._complete(ResultPayload.error(ScanMessages.TIMED_OUT))

    def _handle_failure(self, scan_id: int, detail: str) -> None:
        if not self._is_current(scan_id, ScanState.CAPTURING, ScanState.WAITING_FOR_DETECTION):
            return
        logger.error(f"Capture interrupted: {detail}")
        self._complete(ResultPayload.error(ScanMessages.INTERRUPTED.format(detail=detail)))

    # =========================================================================
    # TRANSITIONS
    # =========================================================================

    def _complete(self, payload: ResultPayload) -> None:
        """Tear the capture down, then finish with `payload`."""
        if self._state in (ScanState.IDLE, ScanState.STOPPING):
            return

        self._enter(ScanState.STOPPING)
        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

        pipeline, self._pipeline = self._pipeline, None
        self._teardown_task = asyncio.get_running_loop().create_task(
            self._teardown(pipeline, payload)
        )

    async def _teardown(self, pipeline: Optional[CapturePipeline], payload: ResultPayload) -> None:
        if pipeline is not None:
            try:
                await asyncio.to_thread(pipeline.stop)
            except Exception as e:
                logger.error(f"Capture teardown error: {e}")
        self._finish(payload)

    def _finish(self, payload: ResultPayload) -> None:
        """Return to IDLE and deliver the final payload of the scan."""
        callback = self._on_error if payload.is_error else self._on_success
        self._on_error = None
        self._on_success = None
        self._enter(ScanState.IDLE)

        if callback is None:
            logger.warning(f"Scan finished with nobody waiting: {payload.to_dict()}")
            return
        callback(payload)

    def _emit(self, payload: ResultPayload) -> None:
        """Deliver a payload without ending the scan."""
        callback = self._on_error if payload.is_error else self._on_success
        if callback is not None:
            callback(payload)

    def _enter(self, state: ScanState) -> None:
        logger.debug(f"Scan state: {self._state.value} -> {state.value}")
        self._state = state

    def _is_current(self, scan_id: int, *states: ScanState) -> bool:
        return scan_id == self._scan_id and (not states or self._state in states)
