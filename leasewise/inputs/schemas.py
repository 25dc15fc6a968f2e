"""
schemas.py — cross-cutting request/response contracts for the input layer.

Defines:
  - ErrorDetail, ErrorBody, ErrorResponse  (standard error envelope)
  - ShareLinkResponse                      (POST /api/share-link output)
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Error response models — used by main.py exception handlers and routes
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or business-rule error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation field path, e.g. "slabs.3.rate"
    issue: str                     # Human-readable description of the problem


class ErrorBody(BaseModel):
    """Error envelope body."""
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, NOT_FOUND, etc.
    message: str                                   # High-level error description
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all LeaseWise endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


# ---------------------------------------------------------------------------
# Share link
# ---------------------------------------------------------------------------

class ShareLinkResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str     # "ctc=3000000&stdDeduction=75000&engineCC=%22below%22..."
    url: str       # public_base_url + "?" + query


__all__ = [
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
    "ShareLinkResponse",
]
