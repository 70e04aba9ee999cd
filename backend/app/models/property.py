"""Property model — listings for sale, long-term rent, or short-term rent."""

from decimal import Decimal

from sqlalchemy import JSON, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin

LISTING_TYPES = ("sale", "long_term_rental", "short_term_rental")

# Stays are booked as date ranges; visits are booked as hourly slots.
STAY_LISTING_TYPES = frozenset({"short_term_rental"})
VISIT_LISTING_TYPES = frozenset({"sale", "long_term_rental"})


class Property(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A catalogue listing managed from the dashboard."""

    __tablename__ = "properties"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    listing_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), default=None)
    location: Mapped[str | None] = mapped_column(String(255), default=None)
    bedrooms: Mapped[int | None] = mapped_column(Integer, default=None)
    area: Mapped[int | None] = mapped_column(Integer, default=None)  # m²
    description: Mapped[str | None] = mapped_column(Text, default=None)
    images: Mapped[list | None] = mapped_column(JSON, default=list)
    features: Mapped[list | None] = mapped_column(JSON, default=list)

    # Relationships
    bookings: Mapped[list["Booking"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", lazy="noload", cascade="all, delete-orphan", passive_deletes=True
    )
    reservations: Mapped[list["Reservation"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="property", lazy="noload", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def visit_type(self) -> str:
        """Reservation type matching this listing: ``sale`` or ``rental``."""
        return "sale" if self.listing_type == "sale" else "rental"

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, title={self.title!r}, type={self.listing_type!r})>"
