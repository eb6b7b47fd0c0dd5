"""
==============================================================================
Service Schemas Module
==============================================================================

Descriptors exchanged between the transport adapter, the request handler
and the scan session.

Wire Format:
-----------
A scan result is a JSON object with exactly one key:

    {"barocde": "<decoded string>"}     # success
    {"error": "<message>"}              # failure

The success key keeps its historical spelling; web clients depend on it.

==============================================================================
"""

from __future__ import annotations

import enum
import json
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


BARCODE_KEY = "barocde"
ERROR_KEY = "error"


class RequestDescriptor(BaseModel):
    """Inbound request as seen by the service: method, path and query."""

    model_config = ConfigDict(frozen=True)

    method: str
    path: Optional[str] = None
    query: Optional[str] = None

    @field_validator("query")
    @classmethod
    def empty_query_is_absent(cls, value: Optional[str]) -> Optional[str]:
        """Treat an empty query string as no query at all."""
        return value or None


class ResponseDescriptor(BaseModel):
    """Status code and headers of an outbound response."""

    model_config = ConfigDict(frozen=True)

    status_code: int = Field(default=200, ge=100, le=599)
    headers: Dict[str, str] = Field(default_factory=dict)


class ResultKind(str, enum.Enum):
    """Outcome of a scan."""

    BARCODE = "barcode"
    ERROR = "error"


class ResultPayload(BaseModel):
    """
    Scan outcome delivered from the scan session to the request handler.

    Example:
        >>> ResultPayload.barcode("12345").to_json()
        b'{"barocde": "12345"}'
    """

    model_config = ConfigDict(frozen=True)

    kind: ResultKind
    message: str

    @classmethod
    def barcode(cls, value: str) -> "ResultPayload":
        return cls(kind=ResultKind.BARCODE, message=value)

    @classmethod
    def error(cls, message: str) -> "ResultPayload":
        return cls(kind=ResultKind.ERROR, message=message)

    @property
    def is_error(self) -> bool:
        return self.kind is ResultKind.ERROR

    def to_dict(self) -> Dict[str, str]:
        key = ERROR_KEY if self.is_error else BARCODE_KEY
        return {key: self.message}

    def to_json(self) -> bytes:
        """
        Encode the payload as UTF-8 JSON.

        Raises:
            ValueError: If the message cannot be encoded
        """
        return json.dumps(self.to_dict(), ensure_ascii=False).encode("utf-8")


class HandlerResult(BaseModel):
    """Tagged result of one handled request: response descriptor plus body."""

    model_config = ConfigDict(frozen=True)

    response: ResponseDescriptor
    body: Optional[bytes] = None
