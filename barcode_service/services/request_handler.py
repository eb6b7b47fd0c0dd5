"""
==============================================================================
Request Handler Module
==============================================================================

Validates requests for the barcode scanner service and turns scan results
into responses.

Validation:
-----------
1. No path                                   → 400 Bad Request
2. Path other than /barcodescanner, or query → 400 Bad Request
3. Method other than GET                     → 405 Method Not Allowed
                                               (Allow: GET)
4. Scanner busy                              → 409 Conflict
5. Otherwise scan; the first result answers the request with the caller's
   default response and the JSON payload as body.

HTTP status only reflects the shape of the request. A scan that fails
(permission, camera, cancellation) still answers 200 with {"error": ...}.

==============================================================================
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from barcode_service.core import exceptions
from barcode_service.scanner import ScannerBusyError, ScanSession
from barcode_service.schemas.service import (
    HandlerResult,
    RequestDescriptor,
    ResponseDescriptor,
    ResultPayload,
)


# Module logger
logger = logging.getLogger(__name__)

SERVICE_IDENTIFIER = "barcodescanner"
BUSY_MESSAGE = "Scanner busy - a scan is already in progress"


class RequestHandler:
    """
    Entry point for barcode scanner service requests.

    Holds no per-request state; the scan session is injected.

    Attributes:
        service_identifier: First (and only) path component served

    Example:
        >>> handler = RequestHandler(session)
        >>> result = await handler.handle(
        ...     RequestDescriptor(method="GET", path="/barcodescanner"),
        ...     ResponseDescriptor()
        ... )
        >>> result.body
        b'{"barocde": "12345"}'
    """

    def __init__(self, session: ScanSession, service_identifier: str = SERVICE_IDENTIFIER) -> None:
        self._session = session
        self.service_identifier = service_identifier

    @property
    def service_path(self) -> str:
        return f"/{self.service_identifier}"

    async def handle(
        self,
        request: RequestDescriptor,
        default_response: ResponseDescriptor
    ) -> HandlerResult:
        """
        Validate `request` and, if it is a scan request, run one scan.

        Args:
            request: Method, path and query of the inbound request
            default_response: 200 response returned as-is on every scan outcome

        Returns:
            Response descriptor plus body

        Raises:
            AppException: If the scan result cannot be serialized
        """
        if request.path is None:
            return self._error_status(400)

        if request.path.lower() != self.service_path or request.query is not None:
            logger.debug(f"Rejecting {request.method} {request.path}?{request.query or ''}")
            return self._error_status(400)

        if request.method != "GET":
            return self._error_status(405, {"Allow": "GET"})

        loop = asyncio.get_running_loop()
        result: asyncio.Future = loop.create_future()

        def deliver(payload: ResultPayload) -> None:
            if result.done():
                logger.info(f"Request already answered, dropping {payload.to_dict()}")
                return
            result.set_result(payload)

        try:
            self._session.scan(on_error=deliver, on_success=deliver)
        except ScannerBusyError as e:
            logger.warning(f"Scan rejected: {e}")
            return HandlerResult(
                response=ResponseDescriptor(status_code=409),
                body=ResultPayload.error(BUSY_MESSAGE).to_json(),
            )

        try:
            payload = await result
        except asyncio.CancelledError:
            if self._session.cancel():
                logger.info("Request cancelled, stopping scan")
            raise

        return HandlerResult(response=default_response, body=self._serialize(payload))

    async def perform_request(
        self,
        request: RequestDescriptor,
        default_response: ResponseDescriptor,
        on_response: Callable[[ResponseDescriptor], None],
        on_body: Callable[[bytes], None],
        on_complete: Callable[[], None]
    ) -> None:
        """
        Callback form of `handle` for chunked-response transports.

        Calls on_response, on_body and on_complete exactly once each, in
        that order. Error responses carry an empty body; an application
        error raised while handling becomes its own status with an empty body.
        """
        try:
            result = await self.handle(request, default_response)
        except exceptions.AppException as e:
            result = self._error_status(e.status_code)
        on_response(result.response)
        on_body(result.body or b"")
        on_complete()

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _error_status(status_code: int, headers: Optional[dict] = None) -> HandlerResult:
        return HandlerResult(
            response=ResponseDescriptor(status_code=status_code, headers=headers or {}),
        )

    @staticmethod
    def _serialize(payload: ResultPayload) -> bytes:
        try:
            return payload.to_json()
        except (TypeError, ValueError) as e:
            logger.error(f"Error serializing scan result into JSON: {e}")
            raise exceptions.serialization_failed(str(e)) from e
