"""
==============================================================================
Scanner Models Module
==============================================================================

Pydantic models for decoded codes and scan session state.

==============================================================================
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .symbology import Symbology


class BoundingBox(BaseModel):
    """Location of a decoded code within its frame, in pixels."""

    model_config = ConfigDict(frozen=True)

    x: int = 0
    y: int = 0
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)


class Detection(BaseModel):
    """
    One decoded code in a frame.

    Attributes:
        symbology: Type tag of the code
        value: Decoded text, or None when the payload is not valid UTF-8
        rect: Where the code was found
    """

    model_config = ConfigDict(frozen=True)

    symbology: Symbology
    value: Optional[str] = None
    rect: BoundingBox = Field(default_factory=BoundingBox)


class ScanState(str, enum.Enum):
    """Lifecycle of one scan."""

    IDLE = "idle"
    CHECKING_PERMISSION = "checking_permission"
    CAPTURING = "capturing"
    WAITING_FOR_DETECTION = "waiting_for_detection"
    STOPPING = "stopping"
