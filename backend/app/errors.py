"""Typed errors raised by the booking and reservation services.

Routers never build HTTP responses for these themselves: ``app.main``
registers a handler that maps each class to its status code.
"""

from fastapi import status


class BookingError(Exception):
    """Base class for domain errors surfaced to API clients."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookingError):
    """Malformed input: inverted range, past date, wrong listing type, bad transition."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(BookingError):
    """The requested range or slot overlaps an existing commitment."""

    status_code = status.HTTP_409_CONFLICT


class NotFoundError(BookingError):
    """A referenced property, booking, reservation or block does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
