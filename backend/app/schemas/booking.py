"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from app.schemas.property import PropertyResponse

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingCreate(BaseModel):
    """Schema for requesting a stay.

    The date order is checked by the booking service, not here, so that an
    inverted range is reported as a 400 like every other booking rule.
    """

    property_id: uuid.UUID
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    client_phone: str | None = Field(None, max_length=50)
    start_date: date
    end_date: date
    guests: int = Field(1, ge=1)
    total_price: Decimal | None = Field(None, ge=0)
    notes: str | None = None


class BookingUpdate(BaseModel):
    """Schema for editing a booking. Only explicitly set fields are changed.

    Status is not editable here; it moves through ``PATCH /{id}/status``.
    """

    client_name: str | None = Field(None, min_length=1, max_length=255)
    client_email: EmailStr | None = None
    client_phone: str | None = Field(None, max_length=50)
    start_date: date | None = None
    end_date: date | None = None
    guests: int | None = Field(None, ge=1)
    total_price: Decimal | None = Field(None, ge=0)
    notes: str | None = None

    @model_validator(mode="after")
    def _required_fields_not_null(self) -> "BookingUpdate":
        for name in ("client_name", "client_email", "start_date", "end_date", "guests"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class BookingStatusUpdate(BaseModel):
    """Schema for moving a booking through its lifecycle."""

    status: str = Field(..., pattern="^(pending|confirmed|completed|cancelled|expired)$")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response returned from CRUD operations."""

    id: uuid.UUID
    property_id: uuid.UUID
    client_name: str
    client_email: str
    client_phone: str | None = None
    start_date: date
    end_date: date
    guests: int
    total_price: Decimal | None = None
    notes: str | None = None
    status: str
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingDetailResponse(BookingResponse):
    """Booking response with the nested property, for dashboard detail views."""

    property: PropertyResponse | None = None


class BookingListResponse(BaseModel):
    """Paginated list of bookings."""

    items: list[BookingResponse]
    total: int
