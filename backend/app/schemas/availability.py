"""Pydantic v2 schemas for blocked dates and the weekly visit template."""

import uuid
import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.services.availability import Weekday

# ---------------------------------------------------------------------------
# Blocked dates
# ---------------------------------------------------------------------------


class BlockDateRequest(BaseModel):
    """Block a whole day, or a single visit slot when ``time`` is given."""

    date: dt.date
    time: dt.time | None = None
    reason: str | None = Field(None, max_length=255)


class UnblockDateRequest(BaseModel):
    """Remove a manual block previously created with the same date/time."""

    date: dt.date
    time: dt.time | None = None


class BlockedDateResponse(BaseModel):
    """A blocked day or slot."""

    id: uuid.UUID
    property_id: uuid.UUID | None = None
    date: dt.date = Field(validation_alias="day")
    time: dt.time | None = Field(None, validation_alias="slot_time")
    reason: str | None = None
    booking_id: uuid.UUID | None = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


# ---------------------------------------------------------------------------
# Weekly template
# ---------------------------------------------------------------------------


class AvailabilityCreate(BaseModel):
    """Schema for adding an open-hours window to a weekday."""

    day_of_week: Weekday
    start_time: dt.time
    end_time: dt.time
    is_active: bool = True

    @model_validator(mode="after")
    def check_times(self) -> "AvailabilityCreate":
        """Validate that end_time is strictly after start_time."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityUpdate(BaseModel):
    """Schema for partially updating a window. All fields optional."""

    day_of_week: Weekday | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_times(self) -> "AvailabilityUpdate":
        """If both times are provided, validate end_time > start_time."""
        if self.start_time is not None and self.end_time is not None and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityResponse(BaseModel):
    """A weekly open-hours window."""

    id: uuid.UUID
    day_of_week: Weekday
    start_time: dt.time
    end_time: dt.time
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
