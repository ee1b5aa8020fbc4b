"""
DevCamper Backend — Shared Response Envelopes
===============================================

What:  Pydantic models for the `{success, data, ...}` envelope every endpoint
       returns, plus the error and health payloads.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, model_serializer

T = TypeVar("T")


class DataResponse(BaseModel, Generic[T]):
    """`{success, data}` — single-object responses."""
    success: bool = True
    data: T


class CountResponse(BaseModel, Generic[T]):
    """`{success, count, data}` — unpaginated list responses."""
    success: bool = True
    count: int
    data: List[T]


class RadiusResponse(BaseModel, Generic[T]):
    """`{success, results, data}` — radius search responses."""
    success: bool = True
    results: int
    data: List[T]


class PageLink(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    """Links to neighbouring pages; absent keys mean there is no such page."""
    next: Optional[PageLink] = None
    prev: Optional[PageLink] = None

    @model_serializer(mode="wrap")
    def drop_missing_links(self, handler) -> Dict[str, Any]:
        return {k: v for k, v in handler(self).items() if v is not None}


class PaginatedResponse(BaseModel):
    """
    Advanced results envelope.

    `data` items are plain dicts because `?select=` may trim fields.
    """
    success: bool = True
    count: int = Field(description="Number of items in this page")
    pagination: Pagination
    data: List[Dict[str, Any]]
    total: int = Field(default=0, exclude=True, description="Matching items across all pages")


class ErrorResponse(BaseModel):
    """
    Standardized error envelope for all API errors.

    Example:
        {
            "success": false,
            "error": "not_found",
            "message": "Bootcamp not found with id of 7f9c...",
            "request_id": "a1b2c3d4"
        }
    """
    success: bool = False
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    geocoder: str = Field(description="closed, half_open or open circuit state")
    uptime_seconds: float
