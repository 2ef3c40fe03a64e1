"""Error response schemas."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    """Machine-readable error code plus a human message."""

    code: str
    message: str
    details: dict[str, Any] = {}


class ErrorResponse(BaseModel):
    """Envelope for every error returned by the API."""

    error: ErrorDetail
    request_id: Optional[str] = None
    timestamp: datetime
