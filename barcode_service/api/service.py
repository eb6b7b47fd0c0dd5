"""
==============================================================================
Service Transport Module
==============================================================================

HTTP transport for the barcode scanner service.

Every request that no other route claims lands here, is turned into a
RequestDescriptor and handed to the RequestHandler; the tagged result is
turned back into a Starlette response. Validation of path, query and method
belongs to the handler, so unknown paths answer 400 rather than 404.

==============================================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response

from barcode_service.core.dependencies import get_request_handler
from barcode_service.schemas.service import (
    HandlerResult,
    RequestDescriptor,
    ResponseDescriptor,
)
from barcode_service.services import RequestHandler


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Service"])

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


class ServiceTransport:
    """Translates between Starlette and the handler's descriptors."""

    @staticmethod
    def to_descriptor(request: Request) -> RequestDescriptor:
        return RequestDescriptor(
            method=request.method,
            path=request.url.path or None,
            query=request.url.query or None,
        )

    @staticmethod
    def default_response() -> ResponseDescriptor:
        """200 OK with no extra headers."""
        return ResponseDescriptor()

    @staticmethod
    def to_response(result: HandlerResult) -> Response:
        return Response(
            content=result.body or b"",
            status_code=result.response.status_code,
            headers=dict(result.response.headers),
        )


@router.api_route("/{service_path:path}", methods=ALL_METHODS, include_in_schema=False)
async def perform_request(
    request: Request,
    handler: RequestHandler = Depends(get_request_handler)
) -> Response:
    """Barcode scanner service entry point (GET /barcodescanner)."""
    descriptor = ServiceTransport.to_descriptor(request)
    result = await handler.handle(descriptor, ServiceTransport.default_response())

    logger.info(
        f"{descriptor.method} {descriptor.path} -> {result.response.status_code}"
    )
    return ServiceTransport.to_response(result)
