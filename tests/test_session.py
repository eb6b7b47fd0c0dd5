"""
==============================================================================
Scan Session Tests
==============================================================================

State machine behaviour with fake camera, overlay and pipeline.

==============================================================================
"""

import asyncio

import pytest

from barcode_service.scanner import (
    CameraAuthorization,
    CameraAuthorizer,
    CaptureStartError,
    Detection,
    ScanMessages,
    ScannerBusyError,
    ScanSession,
    ScanState,
    Symbology,
)
from barcode_service.schemas import ResultPayload

from conftest import FakeDevice, FakeOverlay, qr, wait_for_state


def run(coro):
    return asyncio.run(coro)


class TestPermission:
    """Tests for the permission branch."""

    @pytest.mark.parametrize("status, message", [
        (CameraAuthorization.DENIED, "Denied - User has already denied access to camera."),
        (CameraAuthorization.RESTRICTED, "Restricted - User not authorized to access camera."),
    ])
    def test_refused_states_end_scan_with_error(self, make_harness, status, message):
        """Test denied and restricted cameras answer without capturing."""
        harness = make_harness(status=status)

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error(message)]
        assert harness.devices == []

    def test_not_determined_and_granted_starts_capture(self, make_harness):
        """Test a granted access request continues to capture."""
        harness = make_harness(status=CameraAuthorization.NOT_DETERMINED, grant_on_request=True)

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.session.cancel()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.session.authorization_status() is CameraAuthorization.AUTHORIZED
        assert harness.results == [ResultPayload.error("User cancelled")]

    def test_not_determined_and_refused(self, make_harness):
        """Test a refused access request answers with an error."""
        harness = make_harness(status=CameraAuthorization.NOT_DETERMINED, grant_on_request=False)

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error("Access to camera denied")]
        assert harness.session.authorization_status() is CameraAuthorization.DENIED


class TestCaptureStart:
    """Tests for bringing the camera up."""

    def test_no_camera_present(self, make_harness):
        """Test a missing camera answers with an error."""
        harness = make_harness(camera_present=False)

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error("No camera present")]
        assert harness.pipelines == []

    def test_device_start_failure_includes_detail(self, make_harness):
        """Test a device that fails to stream reports the platform detail."""
        harness = make_harness(open_error=CaptureStartError("camera 0 opened but delivered no frames"))

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error(
            "unable to start video capture - camera 0 opened but delivered no frames"
        )]

    def test_overlay_failure_releases_device(self, make_harness):
        """Test a pipeline that cannot start leaves no camera open."""
        harness = make_harness(start_error=CaptureStartError("cannot open preview window"))

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error(
            "unable to start video capture - cannot open preview window"
        )]
        assert harness.devices[0].release_calls == 1

    def test_preview_construction_failure_releases_device(self, make_harness):
        """Test an overlay that cannot be built still releases the opened camera."""
        harness = make_harness(overlay_error=RuntimeError("display gone"))

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error("unable to start video capture - display gone")]
        assert harness.pipelines == []
        assert harness.devices[0].release_calls == 1


class TestDetection:
    """Tests for decoded batch handling."""

    def test_first_supported_code_completes_scan(self, make_harness):
        """Test a QR code stops capture and answers exactly once."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_batch([qr("12345")])
            harness.pipeline.on_batch([qr("67890")])
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.barcode("12345")]
        assert harness.pipeline.stop_calls == 1
        assert harness.devices[0].release_calls == 1

    def test_empty_batch_reports_error_and_keeps_scanning(self, make_harness):
        """Test an empty batch emits an error without releasing the camera."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_batch([])
            await asyncio.sleep(0.05)
            state_after_empty = harness.session.state
            stops_after_empty = harness.pipeline.stop_calls
            harness.pipeline.on_batch([qr("12345")])
            await wait_for_state(harness.session, ScanState.IDLE)
            return state_after_empty, stops_after_empty

        state_after_empty, stops_after_empty = run(scenario())

        assert state_after_empty is ScanState.WAITING_FOR_DETECTION
        assert stops_after_empty == 0
        assert harness.results == [
            ResultPayload.error("Barcode/QR code is detected"),
            ResultPayload.barcode("12345"),
        ]

    def test_unsupported_first_code_is_ignored(self, make_harness):
        """Test only the first detection's symbology is considered."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_batch([Detection(symbology=Symbology.EAN8, value="96385074"), qr("12345")])
            await asyncio.sleep(0.05)
            waiting = harness.session.state
            harness.session.cancel()
            await wait_for_state(harness.session, ScanState.IDLE)
            return waiting

        assert run(scenario()) is ScanState.WAITING_FOR_DETECTION
        assert harness.results == [ResultPayload.error("User cancelled")]

    def test_supported_code_without_text_keeps_waiting(self, make_harness):
        """Test a code with no text value neither answers nor stops capture."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_batch([qr(None)])
            await asyncio.sleep(0.05)
            stops = harness.pipeline.stop_calls
            harness.pipeline.on_batch([Detection(symbology=Symbology.CODE128, value="ABC-123")])
            await wait_for_state(harness.session, ScanState.IDLE)
            return stops

        assert run(scenario()) == 0
        assert harness.results == [ResultPayload.barcode("ABC-123")]

    @pytest.mark.parametrize("symbology", [
        Symbology.QR, Symbology.CODE128, Symbology.CODE39, Symbology.CODE93,
        Symbology.UPCE, Symbology.PDF417, Symbology.EAN13, Symbology.AZTEC,
    ])
    def test_every_supported_symbology_completes(self, make_harness, symbology):
        """Test each supported symbology ends the scan."""
        harness = make_harness(auto_batch=[Detection(symbology=symbology, value="X1")])

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.barcode("X1")]


class TestTermination:
    """Tests for cancellation, timeout and failures."""

    def test_done_pressed_cancels_scan(self, make_harness):
        """Test the Done control answers 'User cancelled' and tears down once."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_done()
            harness.pipeline.on_done()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error("User cancelled")]
        assert harness.pipeline.stop_calls == 1

    def test_cancel_when_idle_is_refused(self, make_harness):
        """Test cancel reports False when nothing is capturing."""
        harness = make_harness()
        assert harness.session.cancel() is False

    def test_timeout_ends_scan(self, make_harness):
        """Test a configured timeout gives up the scan."""
        harness = make_harness(scan_timeout=0.05)

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error(ScanMessages.TIMED_OUT)]
        assert harness.pipeline.stop_calls == 1

    def test_camera_failure_ends_scan(self, make_harness):
        """Test a camera that stops delivering frames ends the scan."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_failure("no frame after 5 reads")
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.error("video capture interrupted - no frame after 5 reads")]

    def test_late_batches_after_teardown_are_ignored(self, make_harness):
        """Test nothing is emitted once the scan has finished."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            pipeline = harness.pipeline
            pipeline.on_done()
            await wait_for_state(harness.session, ScanState.IDLE)
            pipeline.on_batch([qr("late")])
            pipeline.on_batch([])

        run(scenario())

        assert harness.results == [ResultPayload.error("User cancelled")]

    def test_close_aborts_scan_in_flight(self, make_harness):
        """Test shutdown releases the camera and answers the waiting scan."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            await harness.session.close()

        run(scenario())

        assert harness.session.state is ScanState.IDLE
        assert harness.results == [ResultPayload.error(ScanMessages.SHUTTING_DOWN)]
        assert harness.devices[0].release_calls == 1

    def test_decoder_error_ends_scan(self):
        """Test a capture thread that crashes still answers and frees the scanner."""
        class BrokenDecoder:
            def decode(self, frame):
                raise RuntimeError("boom")

        device = FakeDevice(frames=["f1", "f2"])
        results = []
        session = ScanSession(
            authorizer=CameraAuthorizer(CameraAuthorization.AUTHORIZED),
            open_camera=lambda: device,
            decoder=BrokenDecoder(),
            overlay_factory=FakeOverlay,
        )

        async def scenario():
            session.scan(on_error=results.append, on_success=results.append)
            await wait_for_state(session, ScanState.IDLE)

        run(scenario())

        assert results == [ResultPayload.error("video capture interrupted - boom")]
        assert device.release_calls == 1
        assert not session.busy


class TestTeardownOrder:
    """Tests that the camera is released before the result is delivered."""

    def record_teardown(self, harness):
        seen = []

        def callback(payload):
            seen.append((payload, harness.pipeline.stop_calls, harness.devices[0].release_calls))

        harness.session.scan(on_error=callback, on_success=callback)
        return seen

    def test_released_before_success(self, make_harness):
        """Test a detection stops the pipeline and releases the device first."""
        harness = make_harness()

        async def scenario():
            seen = self.record_teardown(harness)
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_batch([qr("12345")])
            await wait_for_state(harness.session, ScanState.IDLE)
            return seen

        assert run(scenario()) == [(ResultPayload.barcode("12345"), 1, 1)]

    def test_released_before_cancel_error(self, make_harness):
        """Test Done stops the pipeline and releases the device first."""
        harness = make_harness()

        async def scenario():
            seen = self.record_teardown(harness)
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.pipeline.on_done()
            await wait_for_state(harness.session, ScanState.IDLE)
            return seen

        assert run(scenario()) == [(ResultPayload.error("User cancelled"), 1, 1)]


class TestConcurrency:
    """Tests for the single-scan guard."""

    def test_second_scan_is_rejected_while_busy(self, make_harness):
        """Test a concurrent scan raises ScannerBusyError."""
        harness = make_harness()

        async def scenario():
            harness.scan()
            with pytest.raises(ScannerBusyError):
                harness.scan()
            await wait_for_state(harness.session, ScanState.WAITING_FOR_DETECTION)
            harness.session.cancel()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert len(harness.pipelines) == 1

    def test_next_scan_can_start_after_previous_finished(self, make_harness):
        """Test the session is reusable once IDLE."""
        harness = make_harness(auto_batch=[qr("first")])

        async def scenario():
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)
            harness.scan()
            await wait_for_state(harness.session, ScanState.IDLE)

        run(scenario())

        assert harness.results == [ResultPayload.barcode("first"), ResultPayload.barcode("first")]
        assert len(harness.devices) == 2
