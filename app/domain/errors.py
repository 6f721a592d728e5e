"""
Error taxonomy of the reservation core.

Every error carries an HTTP status code and a ``message_key`` into
``app.core.messages`` so the API layer can render a localized text without
knowing which component raised it.
"""
from datetime import date
from typing import Optional


class BookingError(Exception):
    status_code = 500
    message_key = "generic_error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.message_key)
        self.message = message or self.message_key

    def details(self) -> dict:
        return {}


class InvalidRangeError(BookingError):
    """Bad date range, or a room id not present in settings."""

    status_code = 400
    message_key = "invalid_range"

    def __init__(
        self,
        message: str = "",
        start: Optional[date] = None,
        end: Optional[date] = None,
        room_id: Optional[str] = None,
        message_key: Optional[str] = None,
    ):
        super().__init__(message)
        self.start = start
        self.end = end
        self.room_id = room_id
        if message_key:
            self.message_key = message_key

    def details(self) -> dict:
        data = {}
        if self.start is not None:
            data["start_date"] = self.start.isoformat()
        if self.end is not None:
            data["end_date"] = self.end.isoformat()
        if self.room_id is not None:
            data["room_id"] = self.room_id
        return data


class ConflictError(BookingError):
    """A candidate hold/booking overlaps a booked, blocked or proposed slot."""

    status_code = 409
    message_key = "conflict"

    def __init__(self, room_id: str, day: date, reason: str):
        super().__init__(f"Room {room_id} is not available on {day.isoformat()} ({reason})")
        self.room_id = room_id
        self.day = day
        self.reason = reason

    def details(self) -> dict:
        return {"room_id": self.room_id, "date": self.day.isoformat(), "reason": self.reason}


class MissingRateError(BookingError):
    """Settings lack a rate for a required tier/size combination."""

    message_key = "pricing_unavailable"

    def __init__(self, tier: str, size: Optional[str] = None):
        what = f"{tier}/{size}" if size else tier
        super().__init__(f"No rate configured for {what}")
        self.tier = tier
        self.size = size


class CapacityError(BookingError):
    status_code = 400
    message_key = "capacity_exceeded"

    def __init__(self, room_id: str, beds: int, guests: int):
        super().__init__(f"Room {room_id} has {beds} beds but {guests} guests were assigned")
        self.room_id = room_id
        self.beds = beds
        self.guests = guests

    def details(self) -> dict:
        return {"room_id": self.room_id, "beds": self.beds, "guests": self.guests}


class NotFoundError(BookingError):
    status_code = 404
    message_key = "not_found"

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class HoldOwnershipError(BookingError):
    status_code = 403
    message_key = "hold_not_owned"

    def __init__(self, proposal_id: str):
        super().__init__(f"Hold {proposal_id} belongs to another session")
        self.proposal_id = proposal_id


class InvalidTokenError(BookingError):
    status_code = 403
    message_key = "invalid_token"


class ChristmasAccessError(BookingError):
    """The booking touches a Christmas period and breaks its access rules."""

    status_code = 403
    message_key = "christmas_code_required"

    def __init__(
        self,
        message: str,
        period_start: date,
        period_end: date,
        message_key: Optional[str] = None,
        status_code: Optional[int] = None,
        max_rooms: Optional[int] = None,
    ):
        super().__init__(message)
        self.period_start = period_start
        self.period_end = period_end
        self.max_rooms = max_rooms
        if message_key:
            self.message_key = message_key
        if status_code:
            self.status_code = status_code

    def details(self) -> dict:
        data = {
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
        }
        if self.max_rooms is not None:
            data["max_rooms"] = self.max_rooms
        return data
