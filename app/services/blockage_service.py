import logging
from datetime import date, timedelta
from typing import Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.calendar import enumerate_dates
from app.domain.errors import InvalidRangeError, NotFoundError
from app.models import BlockedDate
from app.services.room_service import RoomService
from app.utils.ids import new_blockage_id

logger = logging.getLogger(__name__)


class BlockageService:
    """Administrative blocks: days on which rooms cannot be held or booked."""

    @staticmethod
    async def create_blockage(
        db: AsyncSession,
        start_date: date,
        end_date: date,
        room_ids: Optional[Sequence[str]] = None,
        reason: str = "",
    ) -> str:
        """
        Block every day from start_date to end_date, both inclusive.
        ``room_ids=None`` blocks the whole property.
        """
        if start_date > end_date:
            raise InvalidRangeError(
                "End date must not be before start date", start=start_date, end=end_date
            )

        if room_ids is not None:
            known_rooms = set(await RoomService.get_room_ids(db))
            for room_id in room_ids:
                if room_id not in known_rooms:
                    raise InvalidRangeError(
                        f"Unknown room {room_id}", room_id=room_id, message_key="unknown_room"
                    )
            targets = list(dict.fromkeys(room_ids))
        else:
            targets = [None]

        blockage_id = new_blockage_id()
        for day in enumerate_dates(start_date, end_date + timedelta(days=1)):
            for room_id in targets:
                db.add(
                    BlockedDate(
                        blockage_id=blockage_id,
                        room_id=room_id,
                        blocked_date=day,
                        reason=reason,
                    )
                )
        await db.commit()

        logger.info(
            f"Blockage {blockage_id} created: {start_date} - {end_date}, "
            f"rooms {'all' if room_ids is None else targets}"
        )
        return blockage_id

    @staticmethod
    async def delete_blockage(db: AsyncSession, blockage_id: str) -> int:
        result = await db.execute(
            delete(BlockedDate).where(BlockedDate.blockage_id == blockage_id)
        )
        if result.rowcount == 0:
            raise NotFoundError("Blockage", blockage_id)
        await db.commit()
        logger.info(f"Blockage {blockage_id} deleted ({result.rowcount} days)")
        return result.rowcount

    @staticmethod
    async def list_blocked_dates(
        db: AsyncSession, start_date: date, end_date: date
    ) -> list[BlockedDate]:
        """Blocked day rows in [start_date, end_date)."""
        result = await db.execute(
            select(BlockedDate)
            .where(BlockedDate.blocked_date >= start_date, BlockedDate.blocked_date < end_date)
            .order_by(BlockedDate.blocked_date, BlockedDate.room_id)
        )
        return list(result.scalars().all())
