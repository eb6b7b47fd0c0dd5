"""
Scanner error types.
"""


class ScannerBusyError(Exception):
    """A scan was requested while another one is still in flight."""


class CaptureStartError(Exception):
    """A camera was found but the capture pipeline could not be started."""
