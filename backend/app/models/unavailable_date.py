"""Unavailable date model — manual blocks and days materialized from bookings."""

import uuid
from datetime import date, time

from sqlalchemy import Date, ForeignKey, Index, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.services.availability import Block, SlotBlock, WholeDayBlock


class UnavailableDate(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A blocked day (``slot_time`` null) or a single blocked visit slot.

    ``property_id`` null means the block is host-wide and applies to every
    property. Rows with ``booking_id`` set were materialized from a stay and
    are removed with it.
    """

    __tablename__ = "unavailable_dates"

    property_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    slot_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    reason: Mapped[str | None] = mapped_column(String(255), nullable=True)
    booking_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    __table_args__ = (Index("ix_unavailable_dates_property_date", "property_id", "date"),)

    def to_block(self) -> Block:
        if self.slot_time is None:
            return WholeDayBlock(self.day)
        return SlotBlock(self.day, self.slot_time)

    def __repr__(self) -> str:
        return f"<UnavailableDate(property_id={self.property_id}, day={self.day}, slot_time={self.slot_time})>"
