"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides camera fakes, scan session factories and a test client.

The fakes stand in for the OpenCV device, the preview overlay and the
capture thread, so scans run without a camera or display.

==============================================================================
"""

import asyncio
from typing import Callable, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

from barcode_service.config import Settings
from barcode_service.main import Application
from barcode_service.scanner import (
    CameraAuthorization,
    CameraAuthorizer,
    Detection,
    ScanSession,
    ScanState,
    Symbology,
)


# ============================================================================
# CAMERA FAKES
# ============================================================================

class FakeDevice:
    """Camera device that counts releases."""

    def __init__(self, frames: Optional[list] = None):
        self.frames = list(frames or [])
        self.release_calls = 0
        self.log: Optional[list] = None

    def read(self):
        if self.frames:
            return True, self.frames.pop(0)
        return False, None

    def release(self):
        self.release_calls += 1
        if self.log is not None:
            self.log.append("device.release")


class FakeOverlay:
    """Overlay that records calls and presses Done after `done_after` renders."""

    def __init__(self, done_after: Optional[int] = None, attach_error: Optional[Exception] = None):
        self.done_after = done_after
        self.attach_error = attach_error
        self.rendered: List[list] = []
        self.log: list = []
        self._done = False

    def attach(self):
        self.log.append("overlay.attach")
        if self.attach_error is not None:
            raise self.attach_error

    def render(self, frame, detections):
        self.rendered.append(detections)
        if self.done_after is not None and len(self.rendered) >= self.done_after:
            self._done = True

    def press_done(self):
        self._done = True

    @property
    def done_pressed(self):
        return self._done

    def detach(self):
        self.log.append("overlay.detach")


class FakePipeline:
    """
    Capture pipeline stand-in.

    Keeps the session's notification callbacks so tests can deliver batches
    on the event loop. With `auto_batch`, delivers that batch right after
    start through the dispatch function, like a camera would.
    """

    def __init__(self, device, decoder, overlay, dispatch, on_batch, on_done, on_failure,
                 start_error=None, auto_batch=None):
        self.device = device
        self.overlay = overlay
        self.dispatch = dispatch
        self.on_batch = on_batch
        self.on_done = on_done
        self.on_failure = on_failure
        self.start_error = start_error
        self.auto_batch = auto_batch
        self.start_calls = 0
        self.stop_calls = 0

    def start(self):
        self.start_calls += 1
        if self.start_error is not None:
            self.device.release()
            raise self.start_error
        if self.auto_batch is not None:
            self.dispatch(self.on_batch, self.auto_batch)

    def stop(self):
        self.stop_calls += 1
        self.device.release()


class SessionHarness:
    """A ScanSession wired to fakes, plus handles on what it created."""

    def __init__(
        self,
        status: CameraAuthorization = CameraAuthorization.AUTHORIZED,
        grant_on_request: bool = True,
        camera_present: bool = True,
        open_error: Optional[Exception] = None,
        start_error: Optional[Exception] = None,
        auto_batch: Optional[List[Detection]] = None,
        scan_timeout: Optional[float] = None,
        overlay_error: Optional[Exception] = None,
    ):
        self.devices: List[FakeDevice] = []
        self.pipelines: List[FakePipeline] = []
        self.results: list = []
        self._camera_present = camera_present
        self._open_error = open_error
        self._start_error = start_error
        self._auto_batch = auto_batch
        self._overlay_error = overlay_error

        self.session = ScanSession(
            authorizer=CameraAuthorizer(status, grant_on_request=grant_on_request),
            open_camera=self._open_camera,
            decoder=object(),
            overlay_factory=self._make_overlay,
            pipeline_factory=self._make_pipeline,
            scan_timeout=scan_timeout,
        )

    def _open_camera(self):
        if self._open_error is not None:
            raise self._open_error
        if not self._camera_present:
            return None
        device = FakeDevice()
        self.devices.append(device)
        return device

    def _make_overlay(self):
        if self._overlay_error is not None:
            raise self._overlay_error
        return FakeOverlay()

    def _make_pipeline(self, **kwargs):
        pipeline = FakePipeline(start_error=self._start_error, auto_batch=self._auto_batch, **kwargs)
        self.pipelines.append(pipeline)
        return pipeline

    def scan(self):
        self.session.scan(on_error=self.results.append, on_success=self.results.append)

    @property
    def pipeline(self) -> FakePipeline:
        return self.pipelines[-1]


async def wait_for_state(session: ScanSession, state: ScanState, timeout: float = 2.0) -> None:
    """Yield to the loop until the session reaches `state`."""
    deadline = asyncio.get_running_loop().time() + timeout
    while session.state is not state:
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError(f"session stuck in {session.state.value}, expected {state.value}")
        await asyncio.sleep(0.01)


def qr(value: Optional[str] = "12345") -> Detection:
    return Detection(symbology=Symbology.QR, value=value)


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def make_harness() -> Callable[..., SessionHarness]:
    """Factory for sessions wired to fakes."""
    return SessionHarness


@pytest.fixture
def test_settings() -> Settings:
    """Settings that ignore the environment's .env file."""
    return Settings(_env_file=None, preview_enabled=False)


@pytest.fixture
def make_client(test_settings: Settings):
    """Build a TestClient around an application using the given harness."""
    clients = []

    def _make(harness: SessionHarness) -> TestClient:
        application = Application(settings=test_settings, scan_session=harness.session)
        client = TestClient(application.app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client, make_harness) -> Generator[TestClient, None, None]:
    """Test client whose camera is authorized and present."""
    yield make_client(make_harness())
