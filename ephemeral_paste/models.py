"""
Pydantic models for stored records, validated input and API responses.
"""
from typing import Optional

from pydantic import BaseModel, Field


class PasteRecord(BaseModel):
    """A persisted paste, as seen by the stores."""
    id: str = Field(..., description="Unique paste ID")
    content: str = Field(..., description="Raw paste body, stored verbatim")
    created_at_ms: int = Field(..., description="Creation time (epoch milliseconds)")
    expires_at_ms: Optional[int] = Field(None, description="Absolute expiry (epoch ms, null if no TTL)")
    remaining_views: Optional[int] = Field(None, ge=0, description="Views left (null if unlimited)")


class PasteCreate(BaseModel):
    """Validated input for creating a paste."""
    content: str = Field(..., description="Text content (required, non-empty)")
    ttl_seconds: Optional[int] = Field(None, ge=1, description="Optional TTL in seconds")
    max_views: Optional[int] = Field(None, ge=1, description="Optional view limit")


class PasteCreated(BaseModel):
    """Schema for paste creation response."""
    id: str = Field(..., description="Unique paste ID")
    url: str = Field(..., description="Shareable URL to view the paste")


class PasteView(BaseModel):
    """Schema for viewing/fetching a paste."""
    content: str = Field(..., description="Paste text content")
    remaining_views: Optional[int] = Field(None, description="Views left (null if unlimited)")
    expires_at: Optional[str] = Field(None, description="Expiry timestamp (ISO 8601, null if no TTL)")


class HealthCheck(BaseModel):
    """Schema for health check response."""
    ok: bool = Field(..., description="Is the application healthy?")


class ErrorResponse(BaseModel):
    """Schema for error responses."""
    error: str = Field(..., description="Error message or code")
