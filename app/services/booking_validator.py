import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.availability import AvailabilitySnapshot, Conflict
from app.domain.errors import ConflictError, InvalidRangeError
from app.domain.pricing import RoomStay
from app.services.availability_service import AvailabilityService, availability_service
from app.services.room_service import RoomService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationResult:
    conflict: Optional[Conflict] = None

    @property
    def ok(self) -> bool:
        return self.conflict is None

    def raise_for_conflict(self) -> None:
        if self.conflict is not None:
            raise ConflictError(
                self.conflict.room_id, self.conflict.day, self.conflict.reason.value
            )

    def as_dict(self) -> dict:
        if self.ok:
            return {"ok": True}
        return {"ok": False, "conflict": self.conflict.as_dict()}


class BookingValidator:
    """
    Decides whether a candidate booking or hold may be written.

    Used for new per-room bookings, bulk bookings, holds and for date changes
    of an existing booking (which passes its own id so it never conflicts with
    its previous self).
    """

    def __init__(self, availability: AvailabilityService = availability_service):
        self.availability = availability

    async def validate(
        self,
        db: AsyncSession,
        start_date: date,
        end_date: date,
        room_ids: Sequence[str],
        exclude_booking_id: Optional[str] = None,
        exclude_session_id: Optional[str] = None,
    ) -> ValidationResult:
        if start_date >= end_date:
            raise InvalidRangeError(
                "End date must be after start date", start=start_date, end=end_date
            )
        stays = [RoomStay(room_id, start_date, end_date) for room_id in room_ids]
        return await self.validate_stays(db, stays, exclude_booking_id, exclude_session_id)

    async def validate_stays(
        self,
        db: AsyncSession,
        stays: Sequence[RoomStay],
        exclude_booking_id: Optional[str] = None,
        exclude_session_id: Optional[str] = None,
        snapshot: Optional[AvailabilitySnapshot] = None,
    ) -> ValidationResult:
        """Same as validate() for stays that may each have their own range."""
        if not stays:
            raise InvalidRangeError("No rooms selected")

        known_rooms = set(await RoomService.get_room_ids(db))
        for stay in stays:
            if stay.room_id not in known_rooms:
                raise InvalidRangeError(
                    f"Unknown room {stay.room_id}", room_id=stay.room_id, message_key="unknown_room"
                )
            if stay.start_date >= stay.end_date:
                raise InvalidRangeError(
                    "End date must be after start date", start=stay.start_date, end=stay.end_date
                )

        if snapshot is None:
            snapshot = await self.availability.load_snapshot(
                db,
                min(stay.start_date for stay in stays),
                max(stay.end_date for stay in stays),
                [stay.room_id for stay in stays],
            )

        conflict = snapshot.find_conflict(stays, exclude_session_id, exclude_booking_id)
        if conflict is not None:
            logger.info(
                f"Conflict: room {conflict.room_id} on {conflict.day} is {conflict.reason.value}"
            )
        return ValidationResult(conflict)


booking_validator = BookingValidator()
