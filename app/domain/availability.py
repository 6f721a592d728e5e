"""
Availability resolution over an in-memory snapshot of the store.

The store-backed services load the bookings, blocks and holds touching a date
window once and then answer any number of (day, room) questions from it.
"""
import hashlib
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, Optional

from app.domain.calendar import contains, enumerate_dates
from app.domain.pricing import RoomStay


class AvailabilityStatus(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    PROPOSED = "proposed"


def contact_key(email: Optional[str]) -> str:
    """Stable, non-reversible key for a guest's email. Same guest, same key."""
    if not email:
        return ""
    return hashlib.sha256(email.strip().lower().encode()).hexdigest()[:12]


@dataclass(frozen=True)
class Availability:
    status: AvailabilityStatus
    detail: dict = field(default_factory=dict)

    @property
    def available(self) -> bool:
        return self.status == AvailabilityStatus.AVAILABLE


@dataclass(frozen=True)
class BookedSlot:
    booking_id: str
    room_id: str
    start_date: date
    end_date: date
    # Used by the calendar to colour one guest's rooms alike; never full contact data
    contact_key: str = ""


@dataclass(frozen=True)
class BlockedSlot:
    blockage_id: str
    room_id: Optional[str]
    day: date
    reason: str = ""

    def covers(self, room_id: str) -> bool:
        return self.room_id is None or self.room_id == room_id


@dataclass(frozen=True)
class HeldSlot:
    proposal_id: str
    session_id: str
    room_id: str
    start_date: date
    end_date: date
    expires_at: datetime


@dataclass(frozen=True)
class Conflict:
    room_id: str
    day: date
    reason: AvailabilityStatus

    def as_dict(self) -> dict:
        return {"room_id": self.room_id, "date": self.day.isoformat(), "reason": self.reason.value}


AVAILABLE = Availability(AvailabilityStatus.AVAILABLE)


class AvailabilitySnapshot:
    def __init__(
        self,
        bookings: Iterable[BookedSlot],
        blocks: Iterable[BlockedSlot],
        holds: Iterable[HeldSlot],
        now: datetime,
    ):
        self.now = now
        self._bookings: dict[str, list[BookedSlot]] = {}
        for slot in bookings:
            self._bookings.setdefault(slot.room_id, []).append(slot)

        self._blocks: dict[date, list[BlockedSlot]] = {}
        for block in blocks:
            self._blocks.setdefault(block.day, []).append(block)

        self._holds: dict[str, list[HeldSlot]] = {}
        for hold in holds:
            self._holds.setdefault(hold.room_id, []).append(hold)

    def resolve(
        self,
        day: date,
        room_id: str,
        exclude_session_id: Optional[str] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> Availability:
        """
        Status of one room on one day, highest precedence first:
        booked, blocked, proposed (unexpired, other sessions only), available.
        """
        for slot in self._bookings.get(room_id, ()):
            if slot.booking_id == exclude_booking_id:
                continue
            if contains(slot.start_date, slot.end_date, day):
                return Availability(
                    AvailabilityStatus.BOOKED,
                    {"booking_id": slot.booking_id, "contact_key": slot.contact_key},
                )

        for block in self._blocks.get(day, ()):
            if block.covers(room_id):
                return Availability(
                    AvailabilityStatus.BLOCKED,
                    {"blockage_id": block.blockage_id, "reason": block.reason},
                )

        for hold in self._holds.get(room_id, ()):
            # Soft expiry: reaped or not, an expired hold does not exist here
            if hold.expires_at <= self.now:
                continue
            if exclude_session_id is not None and hold.session_id == exclude_session_id:
                continue
            if contains(hold.start_date, hold.end_date, day):
                return Availability(
                    AvailabilityStatus.PROPOSED,
                    {"proposal_id": hold.proposal_id, "expires_at": hold.expires_at.isoformat()},
                )

        return AVAILABLE

    def find_conflict(
        self,
        stays: Iterable[RoomStay],
        exclude_session_id: Optional[str] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> Optional[Conflict]:
        """First non-available (room, day) across the stays, in request order."""
        for stay in stays:
            for day in enumerate_dates(stay.start_date, stay.end_date):
                result = self.resolve(day, stay.room_id, exclude_session_id, exclude_booking_id)
                if not result.available:
                    return Conflict(stay.room_id, day, result.status)
        return None
