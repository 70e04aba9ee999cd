"""Weekly availability model — the host's default open hours per weekday."""

from datetime import time

from sqlalchemy import Boolean, Enum, Time
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, TimestampMixin, UUIDPrimaryKeyMixin
from app.services.availability import OpenWindow, Weekday


class WeeklyAvailability(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One open-hours window on a weekday. A weekday may have several."""

    __tablename__ = "availability"

    day_of_week: Mapped[Weekday] = mapped_column(
        Enum(Weekday, name="weekday", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def to_window(self) -> OpenWindow:
        return OpenWindow(self.start_time, self.end_time)

    def __repr__(self) -> str:
        return f"<WeeklyAvailability({self.day_of_week.value} {self.start_time}-{self.end_time})>"
