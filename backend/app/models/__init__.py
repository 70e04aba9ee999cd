"""SQLAlchemy models for ImmoBooking.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from app.models.availability import WeeklyAvailability
from app.models.booking import Booking
from app.models.property import Property
from app.models.reservation import Reservation
from app.models.unavailable_date import UnavailableDate
from app.models.user import User

__all__ = [
    "Booking",
    "Property",
    "Reservation",
    "UnavailableDate",
    "User",
    "WeeklyAvailability",
]
