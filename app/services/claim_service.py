"""
Room-night claims: the storage-level half of double-booking prevention.

Services first run the availability check against a snapshot (cheap, and it
produces the precise reason for the visitor). The claim insert below is what
actually decides a race: ``room_night_claims`` has one row per (room, night),
and an existing row can only be taken over by a single conditional upsert.
If another writer committed first the upsert changes nothing and the caller's
whole transaction is rolled back with ConflictError.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import and_, delete, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.availability import AvailabilityStatus
from app.domain.calendar import enumerate_dates
from app.domain.errors import ConflictError
from app.domain.pricing import RoomStay
from app.models import RoomNightClaim

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClaimOwner:
    booking_id: Optional[str] = None
    proposal_id: Optional[str] = None
    session_id: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def for_hold(cls, proposal_id: str, session_id: str, expires_at: datetime) -> "ClaimOwner":
        return cls(proposal_id=proposal_id, session_id=session_id, expires_at=expires_at)

    @classmethod
    def for_booking(cls, booking_id: str, session_id: Optional[str] = None) -> "ClaimOwner":
        # session_id here only marks whose hold claims the booking may absorb
        return cls(booking_id=booking_id, session_id=session_id)


def _insert(db: AsyncSession):
    if db.get_bind().dialect.name == "postgresql":
        return postgresql.insert
    return sqlite.insert


def _takeover_condition(owner: ClaimOwner, now: datetime):
    conditions = [
        and_(RoomNightClaim.expires_at.is_not(None), RoomNightClaim.expires_at <= now),
    ]
    if owner.session_id is not None:
        # A session never conflicts with its own holds
        conditions.append(
            and_(
                RoomNightClaim.booking_id.is_(None),
                RoomNightClaim.session_id == owner.session_id,
            )
        )
    if owner.booking_id is not None:
        conditions.append(RoomNightClaim.booking_id == owner.booking_id)
    return or_(*conditions)


async def _current_holder_status(db: AsyncSession, room_id: str, night) -> AvailabilityStatus:
    claim = await db.get(RoomNightClaim, (room_id, night))
    if claim is not None and claim.booking_id is not None:
        return AvailabilityStatus.BOOKED
    return AvailabilityStatus.PROPOSED


async def claim_nights(
    db: AsyncSession,
    stays: Iterable[RoomStay],
    owner: ClaimOwner,
    now: datetime,
) -> int:
    """Claim every night of every stay for ``owner`` or raise ConflictError."""
    insert = _insert(db)
    claimed = 0
    for stay in stays:
        for night in enumerate_dates(stay.start_date, stay.end_date):
            stmt = insert(RoomNightClaim.__table__).values(
                room_id=stay.room_id,
                night=night,
                booking_id=owner.booking_id,
                proposal_id=owner.proposal_id,
                session_id=None if owner.booking_id else owner.session_id,
                expires_at=owner.expires_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["room_id", "night"],
                set_={
                    "booking_id": stmt.excluded.booking_id,
                    "proposal_id": stmt.excluded.proposal_id,
                    "session_id": stmt.excluded.session_id,
                    "expires_at": stmt.excluded.expires_at,
                },
                where=_takeover_condition(owner, now),
            )
            result = await db.execute(stmt)
            if result.rowcount == 0:
                reason = await _current_holder_status(db, stay.room_id, night)
                logger.info(
                    f"Claim lost for room {stay.room_id} on {night} ({reason.value})"
                )
                raise ConflictError(stay.room_id, night, reason.value)
            claimed += 1
    return claimed


async def release_proposals(db: AsyncSession, proposal_ids: list[str]) -> None:
    if not proposal_ids:
        return
    await db.execute(
        delete(RoomNightClaim).where(
            RoomNightClaim.booking_id.is_(None),
            RoomNightClaim.proposal_id.in_(proposal_ids),
        )
    )


async def release_session(db: AsyncSession, session_id: str) -> None:
    await db.execute(
        delete(RoomNightClaim).where(
            RoomNightClaim.booking_id.is_(None),
            RoomNightClaim.session_id == session_id,
        )
    )


async def release_booking(db: AsyncSession, booking_id: str) -> None:
    await db.execute(delete(RoomNightClaim).where(RoomNightClaim.booking_id == booking_id))


async def release_expired(db: AsyncSession, now: datetime) -> None:
    await db.execute(
        delete(RoomNightClaim).where(
            RoomNightClaim.expires_at.is_not(None),
            RoomNightClaim.expires_at <= now,
        )
    )


async def claims_for_booking(db: AsyncSession, booking_id: str) -> list[RoomNightClaim]:
    result = await db.execute(
        select(RoomNightClaim)
        .where(RoomNightClaim.booking_id == booking_id)
        .order_by(RoomNightClaim.room_id, RoomNightClaim.night)
    )
    return list(result.scalars().all())
