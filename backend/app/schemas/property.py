"""Pydantic v2 request/response schemas for property endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

_LISTING_TYPE_PATTERN = "^(sale|long_term_rental|short_term_rental)$"

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PropertyCreate(BaseModel):
    """Schema for creating a new property."""

    title: str = Field(..., min_length=1, max_length=255)
    listing_type: str = Field(..., pattern=_LISTING_TYPE_PATTERN)
    price: Decimal | None = Field(None, ge=0)
    location: str | None = Field(None, max_length=255)
    bedrooms: int | None = Field(None, ge=0)
    area: int | None = Field(None, ge=0)
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)


class PropertyUpdate(BaseModel):
    """Schema for partially updating a property. All fields optional."""

    title: str | None = Field(None, min_length=1, max_length=255)
    listing_type: str | None = Field(None, pattern=_LISTING_TYPE_PATTERN)
    price: Decimal | None = Field(None, ge=0)
    location: str | None = Field(None, max_length=255)
    bedrooms: int | None = Field(None, ge=0)
    area: int | None = Field(None, ge=0)
    description: str | None = None
    images: list[str] | None = None
    features: list[str] | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PropertyResponse(BaseModel):
    """Public property information returned from the API."""

    id: uuid.UUID
    title: str
    listing_type: str
    price: Decimal | None = None
    location: str | None = None
    bedrooms: int | None = None
    area: int | None = None
    description: str | None = None
    images: list | None = None
    features: list | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PropertyListResponse(BaseModel):
    """Paginated list of properties."""

    items: list[PropertyResponse]
    total: int
