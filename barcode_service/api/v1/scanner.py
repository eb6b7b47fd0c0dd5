"""
==============================================================================
Scanner Control Endpoints
==============================================================================

Status of the scan session and a remote Done control for hosts that run
without a preview window.

==============================================================================
"""

import logging

from fastapi import APIRouter, Depends

from barcode_service.core import exceptions
from barcode_service.core.dependencies import get_scan_session
from barcode_service.scanner import ScanSession
from barcode_service.schemas import MessageResponse, ScannerStatus, SuccessResponse


# Module logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scanner", tags=["Scanner"])


@router.get("/status", response_model=SuccessResponse)
async def scanner_status(session: ScanSession = Depends(get_scan_session)):
    """Current scan state, whether a scan is in flight, and camera permission."""
    status = ScannerStatus(
        state=session.state.value,
        busy=session.busy,
        authorization=session.authorization_status().value,
    )
    return SuccessResponse(data=status.model_dump())


@router.post("/cancel", response_model=MessageResponse)
async def cancel_scan(session: ScanSession = Depends(get_scan_session)):
    """
    Press Done on the scan in flight.

    The waiting scan request then answers {"error": "User cancelled"}.
    """
    if not session.cancel():
        raise exceptions.no_scan_in_progress()

    logger.info("Scan cancelled through the API")
    return MessageResponse(message="Scan cancelled")
