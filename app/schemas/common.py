"""Envelope and error schemas shared by all endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ResponseMeta(BaseModel):
    """Metadata attached to every API response."""

    timestamp: datetime = Field(..., description="Response creation time (UTC)")
    request_id: str = Field(..., description="Correlation ID of the request")
    api_version: str = Field(default="v1", description="API version")


class ApiResponse(BaseModel):
    """Standard response envelope."""

    status: bool = Field(..., description="Whether the operation succeeded")
    message: str = Field(..., description="Human-readable outcome")
    data: Dict[str, Any] = Field(default_factory=dict, description="Response payload")
    meta: ResponseMeta


class ErrorDetail(BaseModel):
    """Problem details for an error response (RFC 7807)."""

    title: str = Field(..., description="Short summary of the problem type")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Explanation of this occurrence")
    instance: Optional[str] = Field(None, description="Request path")
    request_id: str = Field(..., description="Correlation ID of the request")
    timestamp: datetime = Field(..., description="Error time (UTC)")
    errors: List[Dict[str, Any]] = Field(default_factory=list, description="Field-level errors")
