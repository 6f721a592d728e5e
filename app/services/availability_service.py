import logging
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.availability import (
    Availability,
    AvailabilitySnapshot,
    BlockedSlot,
    BookedSlot,
    HeldSlot,
    contact_key,
)
from app.domain.calendar import get_month_dates
from app.models import BlockedDate, Booking, BookingRoom, Hold, HoldRoom
from app.services.room_service import RoomService
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Loads store state into an AvailabilitySnapshot and answers status queries."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    async def load_snapshot(
        self,
        db: AsyncSession,
        start: date,
        end: date,
        room_ids: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None,
    ) -> AvailabilitySnapshot:
        """Everything that can affect any day in [start, end) for the given rooms."""
        now = now or self.clock()
        rooms = list(room_ids) if room_ids is not None else None

        booking_query = (
            select(BookingRoom, Booking.email)
            .join(Booking, BookingRoom.booking_id == Booking.id)
            .where(BookingRoom.start_date < end, BookingRoom.end_date > start)
        )
        if rooms is not None:
            booking_query = booking_query.where(BookingRoom.room_id.in_(rooms))
        booked = [
            BookedSlot(
                booking_id=room.booking_id,
                room_id=room.room_id,
                start_date=room.start_date,
                end_date=room.end_date,
                contact_key=contact_key(email),
            )
            for room, email in (await db.execute(booking_query)).all()
        ]

        block_query = select(BlockedDate).where(
            BlockedDate.blocked_date >= start, BlockedDate.blocked_date < end
        )
        if rooms is not None:
            block_query = block_query.where(
                BlockedDate.room_id.is_(None) | BlockedDate.room_id.in_(rooms)
            )
        blocks = [
            BlockedSlot(
                blockage_id=block.blockage_id,
                room_id=block.room_id,
                day=block.blocked_date,
                reason=block.reason,
            )
            for block in (await db.execute(block_query)).scalars().all()
        ]

        hold_query = (
            select(HoldRoom.room_id, Hold)
            .join(Hold, HoldRoom.proposal_id == Hold.proposal_id)
            .where(
                Hold.start_date < end,
                Hold.end_date > start,
                Hold.expires_at > now,
            )
        )
        if rooms is not None:
            hold_query = hold_query.where(HoldRoom.room_id.in_(rooms))
        holds = [
            HeldSlot(
                proposal_id=hold.proposal_id,
                session_id=hold.session_id,
                room_id=room_id,
                start_date=hold.start_date,
                end_date=hold.end_date,
                expires_at=hold.expires_at,
            )
            for room_id, hold in (await db.execute(hold_query)).all()
        ]

        logger.debug(
            f"Snapshot {start}..{end}: {len(booked)} booked, {len(blocks)} blocked, {len(holds)} held"
        )
        return AvailabilitySnapshot(booked, blocks, holds, now)

    async def resolve(
        self,
        db: AsyncSession,
        day: date,
        room_id: str,
        session_id: Optional[str] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> Availability:
        snapshot = await self.load_snapshot(db, day, day + timedelta(days=1), [room_id])
        return snapshot.resolve(day, room_id, session_id, exclude_booking_id)

    async def month_grid(
        self,
        db: AsyncSession,
        year: int,
        month: int,
        session_id: Optional[str] = None,
    ) -> dict[str, list[tuple[date, Availability]]]:
        """Status of every room on every day of a month, for calendar painting."""
        days = get_month_dates(year, month)
        room_ids = await RoomService.get_room_ids(db)
        snapshot = await self.load_snapshot(
            db, days[0], days[-1] + timedelta(days=1), room_ids
        )
        return {
            room_id: [(day, snapshot.resolve(day, room_id, session_id)) for day in days]
            for room_id in room_ids
        }


availability_service = AvailabilityService()
