import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from app.domain.availability import AvailabilityStatus


class AvailabilityOut(BaseModel):
    room_id: str
    date: datetime.date
    status: AvailabilityStatus
    label: str
    detail: dict[str, Any] = {}


class CalendarDay(BaseModel):
    date: datetime.date
    status: AvailabilityStatus
    detail: dict[str, Any] = {}


class CalendarOut(BaseModel):
    year: int
    month: int
    rooms: dict[str, list[CalendarDay]]


class ValidateRequest(BaseModel):
    start_date: datetime.date
    end_date: datetime.date
    room_ids: list[str] = Field(min_length=1)
    exclude_booking_id: Optional[str] = None
    session_id: Optional[str] = None


class ConflictOut(BaseModel):
    room_id: str
    date: datetime.date
    reason: AvailabilityStatus
    message: str


class ValidateResponse(BaseModel):
    ok: bool
    conflict: Optional[ConflictOut] = None
