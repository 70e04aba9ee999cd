"""Pydantic v2 request/response schemas for visit reservation endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.schemas.property import PropertyResponse

_STATUS_PATTERN = "^(pending|confirmed|completed|cancelled|expired)$"

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ReservationCreate(BaseModel):
    """Schema for booking a visit slot.

    ``meeting_date`` is a local date-time on a slot boundary, for example
    ``2030-03-04T14:00:00``. ``type`` may be omitted and is then derived from
    the property's listing type.
    """

    property_id: uuid.UUID
    client_name: str = Field(..., min_length=1, max_length=255)
    client_email: EmailStr
    client_phone: str = Field(..., min_length=3, max_length=50)
    meeting_date: datetime
    type: str | None = Field(None, pattern="^(sale|rental)$")
    notes: str | None = None


class ReservationUpdate(BaseModel):
    """Schema for updating a reservation's status or notes."""

    status: str | None = Field(None, pattern=_STATUS_PATTERN)
    notes: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ReservationResponse(BaseModel):
    """Standard reservation response."""

    id: uuid.UUID
    property_id: uuid.UUID
    client_name: str
    client_email: str
    client_phone: str
    type: str = Field(validation_alias="visit_type")
    meeting_date: datetime
    notes: str | None = None
    status: str
    expires_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ReservationDetailResponse(ReservationResponse):
    """Reservation response with the nested property."""

    property: PropertyResponse | None = None


class ReservationListResponse(BaseModel):
    """Paginated list of reservations."""

    items: list[ReservationResponse]
    total: int


class ReservationStatistics(BaseModel):
    """Reservation counts for the dashboard."""

    total: int
    by_status: dict[str, int]
    upcoming: int
