"""Reservation model — property visit appointments on hourly slots."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

_OCCUPYING = text("status IN ('pending', 'confirmed')")


class Reservation(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A prospective buyer or tenant visiting a property at ``meeting_date``."""

    __tablename__ = "reservations"

    property_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_name: Mapped[str] = mapped_column(String(255), nullable=False)
    client_email: Mapped[str] = mapped_column(String(255), nullable=False)
    client_phone: Mapped[str] = mapped_column(String(50), nullable=False)
    visit_type: Mapped[str] = mapped_column(String(20), nullable=False)  # sale, rental
    meeting_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50),
        default="pending",
        index=True,
    )  # pending, confirmed, completed, cancelled, expired
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_by_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    property: Mapped["Property"] = relationship(back_populates="reservations", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    # At most one occupying reservation per property and slot.
    __table_args__ = (
        Index(
            "uq_reservations_property_slot_occupied",
            "property_id",
            "meeting_date",
            unique=True,
            postgresql_where=_OCCUPYING,
            sqlite_where=_OCCUPYING,
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, property_id={self.property_id}, "
            f"meeting_date={self.meeting_date}, status={self.status})>"
        )
