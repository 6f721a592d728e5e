"""
Hold manager (proposed bookings).

A hold softly reserves rooms for one browsing session while the visitor fills
in the booking form. Holds are never modified: changing dates or guests means
deleting the hold and creating a new one. Each hold expires ``ttl`` after
creation; expired holds are ignored by every read immediately and removed
from the store by the periodic reaper.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Callable, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domain.errors import CapacityError, HoldOwnershipError, InvalidRangeError
from app.domain.pricing import GuestBreakdown, RoomStay
from app.models import Hold, HoldRoom
from app.services import claim_service
from app.services.availability_service import AvailabilityService
from app.services.booking_validator import BookingValidator
from app.services.claim_service import ClaimOwner
from app.services.room_service import RoomService
from app.utils.clock import utcnow
from app.utils.ids import new_proposal_id

logger = logging.getLogger(__name__)


class HoldService:
    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ttl = ttl or timedelta(minutes=settings.hold_ttl_minutes)
        self.clock = clock
        self.validator = BookingValidator(AvailabilityService(clock))

    async def create_hold(
        self,
        db: AsyncSession,
        session_id: str,
        start_date: date,
        end_date: date,
        room_ids: Sequence[str],
        guests: GuestBreakdown = GuestBreakdown(),
        price: int = 0,
    ) -> str:
        """
        Hold ``room_ids`` for [start_date, end_date) on behalf of ``session_id``.

        ``guests`` is the party for the whole proposal and must fit into the
        beds of the held rooms together; it is not split per room. The
        availability check ignores the session's own holds. The check, the
        hold insert and the night claims commit together or not at all.
        Raises InvalidRangeError, CapacityError or ConflictError (first
        offending room/day).
        """
        if start_date >= end_date:
            raise InvalidRangeError(
                "End date must be after start date", start=start_date, end=end_date
            )
        if not session_id:
            raise InvalidRangeError("Session id is required")

        room_ids = list(dict.fromkeys(room_ids))
        stays = [RoomStay(room_id, start_date, end_date) for room_id in room_ids]
        now = self.clock()

        try:
            await self._check_capacity(db, room_ids, guests)
            result = await self.validator.validate_stays(
                db, stays, exclude_session_id=session_id
            )
            result.raise_for_conflict()

            hold = Hold(
                proposal_id=new_proposal_id(),
                session_id=session_id,
                start_date=start_date,
                end_date=end_date,
                total_price=price,
                created_at=now,
                expires_at=now + self.ttl,
            )
            hold.set_guests(guests)
            hold.rooms = [HoldRoom(room_id=room_id) for room_id in room_ids]
            db.add(hold)
            await db.flush()

            await claim_service.claim_nights(
                db,
                stays,
                ClaimOwner.for_hold(hold.proposal_id, session_id, hold.expires_at),
                now,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Hold {hold.proposal_id} created for session {session_id}: "
            f"rooms {room_ids}, {start_date} - {end_date}, expires {hold.expires_at}"
        )
        return hold.proposal_id

    async def delete_hold(
        self,
        db: AsyncSession,
        proposal_id: str,
        session_id: Optional[str] = None,
    ) -> bool:
        """
        Remove a hold. Deleting a hold that does not exist is not an error.
        When ``session_id`` is given, only the owning session may delete.
        """
        hold = await db.get(Hold, proposal_id)
        if hold is None:
            return False
        if session_id is not None and hold.session_id != session_id:
            raise HoldOwnershipError(proposal_id)

        await claim_service.release_proposals(db, [proposal_id])
        await db.delete(hold)
        await db.commit()
        logger.info(f"Hold {proposal_id} deleted")
        return True

    async def delete_session_holds(
        self, db: AsyncSession, session_id: str, commit: bool = True
    ) -> int:
        """Drop every hold of a session. Booking creation passes commit=False
        so the holds go away in the booking's own transaction."""
        result = await db.execute(
            select(Hold.proposal_id).where(Hold.session_id == session_id)
        )
        proposal_ids = list(result.scalars().all())
        await self._delete_holds(db, proposal_ids)
        await claim_service.release_session(db, session_id)
        if commit:
            await db.commit()
        if proposal_ids:
            logger.info(f"Deleted {len(proposal_ids)} holds of session {session_id}")
        return len(proposal_ids)

    async def list_active_holds(self, db: AsyncSession, session_id: str) -> list[Hold]:
        now = self.clock()
        result = await db.execute(
            select(Hold)
            .where(Hold.session_id == session_id, Hold.expires_at > now)
            .order_by(Hold.created_at)
        )
        return list(result.scalars().all())

    async def reap_expired(self, db: AsyncSession) -> int:
        """Delete every hold with expires_at <= now. Returns how many were removed."""
        now = self.clock()
        result = await db.execute(select(Hold.proposal_id).where(Hold.expires_at <= now))
        proposal_ids = list(result.scalars().all())

        await self._delete_holds(db, proposal_ids)
        await claim_service.release_expired(db, now)
        await db.commit()

        if proposal_ids:
            logger.info(f"Reaped {len(proposal_ids)} expired holds")
        return len(proposal_ids)

    @staticmethod
    async def _check_capacity(
        db: AsyncSession, room_ids: list[str], guests: GuestBreakdown
    ) -> None:
        beds = {room.id: room.beds for room in await RoomService.get_all_rooms(db)}
        # Unknown rooms are reported by the availability check
        if any(room_id not in beds for room_id in room_ids):
            return
        total_beds = sum(beds[room_id] for room_id in room_ids)
        if guests.bed_guests > total_beds:
            raise CapacityError(",".join(room_ids), total_beds, guests.bed_guests)

    async def _delete_holds(self, db: AsyncSession, proposal_ids: list[str]) -> None:
        if not proposal_ids:
            return
        await db.execute(delete(HoldRoom).where(HoldRoom.proposal_id.in_(proposal_ids)))
        await db.execute(delete(Hold).where(Hold.proposal_id.in_(proposal_ids)))


hold_service = HoldService()
